"""Splitting of source text into overlapping chunks ready for embedding."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator

from langchain_text_splitters import RecursiveCharacterTextSplitter

from . import logger
from .config import ChunkerConfig
from .errors import EmptyInputError
from .schemas import Chunk


def ensure_text(text: str | None) -> str:
    """Return ``text`` unchanged, or raise :class:`EmptyInputError` if it is blank."""

    if text is None or not str(text).strip():
        raise EmptyInputError("No text provided for vector store creation")
    return text


class TextChunker:
    """Split text into overlapping chunks of at most ``chunk_size`` characters.

    Split points follow LangChain's recursive strategy: paragraphs first, then
    lines, then words, and finally single characters for oversized runs.
    """

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        self.config = config or ChunkerConfig()
        self.text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
            length_function=len,
        )

    def split(self, text: str) -> Iterator[Chunk]:
        """Yield :class:`Chunk` objects for ``text`` in document order.

        Validation happens eagerly, before the generator is returned, so an
        empty input fails at the call site rather than on first iteration.
        """

        ensure_text(text)
        return self._iter_chunks(text)

    def _iter_chunks(self, text: str) -> Iterator[Chunk]:
        created_at = datetime.now(timezone.utc).isoformat()
        index = 0
        for window in self.text_splitter.split_text(text):
            stripped = window.strip()
            if not stripped:
                continue
            yield Chunk(text=stripped, index=index, created_at=created_at)
            index += 1
        logger.debug(f"Split {len(text)} characters into {index} chunk(s)", "segment.split")
