"""Answer generation from retrieved context."""

from __future__ import annotations

from typing import Iterable, Sequence

from . import logger
from .llm import ChatProvider, complete_prompt
from .prompt import build_response_prompt
from .schemas import RetrievedChunk


def build_context(chunks: Iterable[RetrievedChunk]) -> str:
    """Join chunk texts with single spaces, in retrieval rank order."""

    return " ".join(chunk.text or "" for chunk in chunks)


class Responder:
    """Fill the response template with retrieved context and ask the chat model."""

    def __init__(self, provider: ChatProvider, model: str, fallback_response: str) -> None:
        self.provider = provider
        self.model = model
        self.fallback_response = fallback_response

    def respond(self, query: str, chunks: Sequence[RetrievedChunk], template: str) -> str:
        """Return the generated answer, or the fallback response.

        With no retrieved chunks the chat model is never called.
        """

        if not chunks:
            logger.info("No context retrieved, returning fallback response", "responder.respond")
            return self.fallback_response

        prompt = build_response_prompt(template, query, build_context(chunks))
        answer = complete_prompt(self.provider, prompt, self.model)
        if answer is None:
            logger.warning("Chat model returned no content, returning fallback response", "responder.respond")
            return self.fallback_response
        return answer
