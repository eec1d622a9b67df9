"""Shared parsing and HTTP utilities for model responses and remote collaborators."""

import logging
import re

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
_ANY_BLOCK_RE = re.compile(r"```[\w+-]*\n[\s\S]*?\n```")


def strip_fences(text: str) -> str:
    """Strip markdown code fences from LLM output if present."""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def extract_code_block(text: str, languages: tuple[str, ...] = ("typescript", "ts")) -> str:
    """Return the body of the first fenced block tagged with one of `languages`.

    Returns an empty string when no such block exists.
    """
    tags = "|".join(re.escape(lang) for lang in languages)
    match = re.search(rf"```(?:{tags})\n([\s\S]*?)\n```", text)
    return match.group(1) if match else ""


def last_marker(text: str, markers: tuple[str, ...]) -> str | None:
    """Return whichever marker occurs last in the prose of `text`.

    Fenced code blocks are ignored so that code containing a marker word
    cannot flip the decision. Returns None if no marker is present.
    """
    prose = _ANY_BLOCK_RE.sub("", text)
    positions = {marker: prose.rfind(marker) for marker in markers}
    found = {marker: pos for marker, pos in positions.items() if pos >= 0}
    if not found:
        return None
    return max(found, key=found.get)


def is_transient(exc: BaseException) -> bool:
    """Return True if the exception is a transient HTTP/network error worth retrying."""
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.ConnectError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503)
    return False


def call_with_retry(fn, *args, max_retries: int = 3, **kwargs):
    """Call fn(*args, **kwargs) with exponential backoff on transient HTTP errors.

    Non-transient errors (auth failures, 404s) are raised immediately.
    """

    @retry(
        stop=stop_after_attempt(max_retries + 1),  # +1 because first attempt counts
        wait=wait_exponential(multiplier=1, min=2, max=16),
        retry=retry_if_exception(is_transient),
        reraise=True,
        before_sleep=lambda state: logger.warning(
            "Transient error: %r. Retrying in %.0fs (attempt %d/%d)...",
            state.outcome.exception(),
            state.next_action.sleep,
            state.attempt_number,
            max_retries,
        ),
    )
    def _call():
        return fn(*args, **kwargs)

    return _call()
