"""Topic-aware Retrieval-Augmented Generation pipeline.

The package exposes the pipeline object, its configuration and error types so
that callers can classify a query and answer it from a reference text in one
call, swapping any of the three external services for their own.
"""

from .config import (
    ChatConfig,
    ChunkerConfig,
    EmbeddingConfig,
    PipelineConfig,
    PromptTemplates,
    VectorStoreConfig,
)
from .errors import (
    ChatProviderError,
    CollectionNotFoundError,
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    EmptyInputError,
    RAGError,
    VectorStoreError,
)
from .pipeline import PipelineStage, RAGPipeline, create_pipeline
from .schemas import Chunk, Point, QueryResult, RetrievedChunk

__all__ = [
    "ChatConfig",
    "ChunkerConfig",
    "EmbeddingConfig",
    "PipelineConfig",
    "PromptTemplates",
    "VectorStoreConfig",
    "ChatProviderError",
    "CollectionNotFoundError",
    "ConfigurationError",
    "DimensionMismatchError",
    "EmbeddingError",
    "EmptyInputError",
    "RAGError",
    "VectorStoreError",
    "PipelineStage",
    "RAGPipeline",
    "create_pipeline",
    "Chunk",
    "Point",
    "QueryResult",
    "RetrievedChunk",
]
