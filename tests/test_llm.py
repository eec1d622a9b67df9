"""Tests for provider selection and the chat-model adapter."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from hubgen.llm import ChatModelClient, build_llm


class TestBuildLLM:
    def test_selected_provider_constructed_once(self):
        model_cls = MagicMock()
        with patch.dict("hubgen.llm.PROVIDERS", {"google": model_cls}):
            client = build_llm({"provider": "google", "model": "gemini-test"})

        model_cls.assert_called_once_with(model="gemini-test", temperature=0)
        assert isinstance(client, ChatModelClient)

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            build_llm({"provider": "nope", "model": "m"})


class TestChatModelClient:
    def test_sends_system_and_user_messages(self):
        chat_model = MagicMock()
        chat_model.invoke.return_value = SimpleNamespace(content="answer")

        assert ChatModelClient(chat_model).invoke("sys", "usr") == "answer"

        messages = chat_model.invoke.call_args[0][0]
        assert messages == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "usr"},
        ]

    def test_joins_content_parts(self):
        chat_model = MagicMock()
        chat_model.invoke.return_value = SimpleNamespace(content=[
            {"type": "text", "text": "VALI"},
            {"type": "tool_use", "id": "x"},
            "DATED",
        ])
        assert ChatModelClient(chat_model).invoke("s", "u") == "VALIDATED"

    def test_errors_propagate(self):
        chat_model = MagicMock()
        chat_model.invoke.side_effect = RuntimeError("provider down")
        with pytest.raises(RuntimeError, match="provider down"):
            ChatModelClient(chat_model).invoke("s", "u")
