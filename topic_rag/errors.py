"""Exception hierarchy shared by every stage of the pipeline."""

from __future__ import annotations


class RAGError(Exception):
    """Base class for all errors raised by :mod:`topic_rag`."""


class ConfigurationError(RAGError, ValueError):
    """Raised when required configuration fields are missing or invalid."""


class EmptyInputError(RAGError, ValueError):
    """Raised when the source text to index is empty or whitespace only."""


class DimensionMismatchError(RAGError):
    """Raised when embedding vectors disagree with a collection's declared size."""

    def __init__(self, collection: str, expected: int, actual: int | None) -> None:
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector size mismatch for collection '{collection}': "
            f"expected {expected}, found {actual}"
        )


class EmbeddingError(RAGError):
    """Raised when the embedding provider fails."""


class VectorStoreError(RAGError):
    """Raised when the vector store provider fails."""


class CollectionNotFoundError(VectorStoreError):
    """Raised by vector store adapters when a collection does not exist."""


class ChatProviderError(RAGError):
    """Raised when the chat completion provider fails."""
