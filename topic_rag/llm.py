"""Chat completion client abstraction."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from openai import OpenAI, OpenAIError

from . import logger
from .config import ChatConfig
from .errors import ChatProviderError

Message = Dict[str, str]


@runtime_checkable
class ChatProvider(Protocol):
    """Single-turn chat completion: messages in, generated text (or ``None``) out."""

    def complete(self, messages: List[Message], model: str) -> Optional[str]: ...


def user_message(prompt: str) -> List[Message]:
    """Wrap ``prompt`` as a one-message, single-turn conversation."""

    return [{"role": "user", "content": prompt}]


class OpenAIChatProvider:
    """Wrapper around any OpenAI-compatible chat completions API (Groq by default)."""

    def __init__(self, api_key: str, config: ChatConfig | None = None, client: OpenAI | None = None) -> None:
        self.config = config or ChatConfig()
        self.client = client or OpenAI(api_key=api_key, base_url=self.config.base_url)

    def complete(self, messages: List[Message], model: str) -> Optional[str]:
        request: Dict[str, Any] = {"model": model, "messages": messages}
        if self.config.temperature is not None:
            request["temperature"] = self.config.temperature

        try:
            response = self.client.chat.completions.create(**request)
        except OpenAIError as exc:
            logger.error(f"Chat completion with model '{model}' failed: {exc}", "llm.complete")
            raise ChatProviderError(
                f"Chat completion failed ({type(exc).__name__}): {exc}"
            ) from exc

        if not response.choices:
            return None
        return response.choices[0].message.content


def complete_prompt(provider: ChatProvider, prompt: str, model: str) -> Optional[str]:
    """Send ``prompt`` as a single user turn and return the stripped text, if any."""

    try:
        content = provider.complete(user_message(prompt), model)
    except ChatProviderError:
        raise
    except Exception as exc:
        raise ChatProviderError(
            f"Chat completion failed ({type(exc).__name__}): {exc}"
        ) from exc

    if content is None:
        return None
    content = str(content).strip()
    return content or None
