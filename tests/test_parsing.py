"""Tests for hubgen.utils.parsing."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from hubgen.utils.parsing import (
    call_with_retry,
    extract_code_block,
    is_transient,
    last_marker,
    strip_fences,
)


def _status_error(code):
    request = httpx.Request("GET", "https://api.example.com")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"{code}", request=request, response=response)


class TestStripFences:
    def test_json_fence(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_fences('  {"a": 1} ') == '{"a": 1}'


class TestExtractCodeBlock:
    def test_typescript(self):
        assert extract_code_block("text\n```typescript\nconst a = 1;\n```\nmore") == "const a = 1;"

    def test_ts_tag(self):
        assert extract_code_block("```ts\nlet b;\n```") == "let b;"

    def test_first_block_wins(self):
        text = "```typescript\nfirst\n```\n```typescript\nsecond\n```"
        assert extract_code_block(text) == "first"

    def test_other_language_ignored(self):
        assert extract_code_block("```python\nx = 1\n```") == ""

    def test_json_language(self):
        text = "```typescript\ncode\n```\n```json\n{}\n```"
        assert extract_code_block(text, languages=("json",)) == "{}"

    def test_multiline_body(self):
        assert extract_code_block("```typescript\na\nb\n```") == "a\nb"


class TestLastMarker:
    MARKERS = ("FINAL", "NEEDS WORK")

    def test_single_marker(self):
        assert last_marker("all good, FINAL", self.MARKERS) == "FINAL"

    def test_last_one_wins(self):
        text = "This is not FINAL yet. NEEDS WORK"
        assert last_marker(text, self.MARKERS) == "NEEDS WORK"

    def test_none_found(self):
        assert last_marker("no verdict", self.MARKERS) is None

    def test_code_blocks_ignored(self):
        text = "NEEDS WORK before\n```typescript\n// FINAL\n```"
        assert last_marker(text, self.MARKERS) == "NEEDS WORK"


class TestIsTransient:
    @pytest.mark.parametrize("code", [429, 500, 502, 503])
    def test_retryable_status(self, code):
        assert is_transient(_status_error(code)) is True

    @pytest.mark.parametrize("code", [401, 403, 404])
    def test_non_retryable_status(self, code):
        assert is_transient(_status_error(code)) is False

    def test_timeout(self):
        assert is_transient(httpx.ReadTimeout("slow")) is True

    def test_connect_error(self):
        assert is_transient(httpx.ConnectError("refused")) is True

    def test_other_exception(self):
        assert is_transient(ValueError("x")) is False


class TestCallWithRetry:
    def test_success_passes_through(self):
        fn = MagicMock(return_value="ok")
        assert call_with_retry(fn, "a", max_retries=2, key="v") == "ok"
        fn.assert_called_once_with("a", key="v")

    @patch("time.sleep")
    def test_transient_then_success(self, mock_sleep):
        fn = MagicMock(side_effect=[_status_error(503), "ok"])
        assert call_with_retry(fn, max_retries=2) == "ok"
        assert fn.call_count == 2

    @patch("time.sleep")
    def test_gives_up_after_max_retries(self, mock_sleep):
        fn = MagicMock(side_effect=_status_error(502))
        with pytest.raises(httpx.HTTPStatusError):
            call_with_retry(fn, max_retries=2)
        assert fn.call_count == 3

    def test_non_transient_raised_immediately(self):
        fn = MagicMock(side_effect=_status_error(404))
        with pytest.raises(httpx.HTTPStatusError):
            call_with_retry(fn, max_retries=3)
        assert fn.call_count == 1
