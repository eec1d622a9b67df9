"""Language-model capability: one provider, chosen once from config, shared by every stage."""

import logging
from typing import Protocol

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI

logger = logging.getLogger(__name__)

PROVIDERS = {
    "anthropic": ChatAnthropic,
    "google": ChatGoogleGenerativeAI,
}


class LLMClient(Protocol):
    def invoke(self, system_prompt: str, user_prompt: str) -> str: ...


class ChatModelClient:
    """Adapts a LangChain chat model to the two-prompt `invoke` capability.

    No retry or backoff lives here; retry policy belongs to the Verification
    Loop and its recovery actions.
    """

    def __init__(self, chat_model):
        self._chat_model = chat_model

    def invoke(self, system_prompt: str, user_prompt: str) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        response = self._chat_model.invoke(messages)
        return _text_of(response.content)


def _text_of(content) -> str:
    # Some providers return a list of content parts instead of a string.
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def build_llm(config: dict) -> ChatModelClient:
    """Construct the configured provider's client. Called once at startup."""
    provider = config.get("provider", "anthropic")
    model_cls = PROVIDERS.get(provider)
    if model_cls is None:
        raise ValueError(
            f"Unknown provider '{provider}'. Must be one of: {sorted(PROVIDERS)}"
        )
    logger.info("Using %s model %s", provider, config["model"])
    return ChatModelClient(model_cls(model=config["model"], temperature=0))
