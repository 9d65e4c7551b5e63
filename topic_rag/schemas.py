"""Shared dataclasses used across the RAG pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True, slots=True)
class Chunk:
    """A trimmed, non-empty fragment of the source text."""

    text: str
    index: int
    created_at: str

    def payload(self) -> Dict[str, Any]:
        """Return the payload persisted next to the chunk's vector."""

        return {
            "text": self.text,
            "chunk_index": self.index,
            "timestamp": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class Point:
    """The unit persisted in the vector store."""

    id: int
    vector: List[float]
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CollectionInfo:
    """Declared shape of an existing collection."""

    name: str
    dimension: int | None
    distance: str | None = None


@dataclass(slots=True)
class RetrievedChunk:
    """Container for a point returned by a similarity search."""

    id: int | str
    text: str
    score: float
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Final answer returned by :meth:`RAGPipeline.process_query`."""

    answer: str
    category: str
