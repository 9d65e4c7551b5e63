"""Configuration objects for the topic-aware RAG pipeline."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .prompt import DEFAULT_CLASSIFICATION_PROMPT, DEFAULT_RESPONSE_PROMPT

DEFAULT_COLLECTION_NAME = "default_collection"
DEFAULT_FALLBACK_RESPONSE = "I could not find relevant information for your query."
DEFAULT_CATEGORY = "general"

REQUIRED_FIELDS = (
    "embedding_api_key",
    "vector_store_url",
    "vector_store_api_key",
    "chat_api_key",
)


@dataclass(frozen=True)
class ChunkerConfig:
    """Parameters for the chunking stage."""

    chunk_size: int = 1000
    chunk_overlap: int = 200

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {self.chunk_size}")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ConfigurationError(
                f"chunk_overlap must be in [0, {self.chunk_size}), got {self.chunk_overlap}"
            )


@dataclass(frozen=True)
class EmbeddingConfig:
    """Settings for the embedding stage."""

    model_name: str = "text-embedding-3-small"
    max_workers: int = 8

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")


@dataclass(frozen=True)
class VectorStoreConfig:
    """Collection layout and request sizing for the vector store."""

    distance: str = "Cosine"
    replication_factor: int = 2
    write_consistency_factor: int = 1
    default_segment_number: int = 2
    upsert_batch_size: int = 10
    top_k: int = 3
    timeout: int = 30

    def __post_init__(self) -> None:
        if self.upsert_batch_size < 1:
            raise ConfigurationError(
                f"upsert_batch_size must be >= 1, got {self.upsert_batch_size}"
            )
        if self.top_k < 1:
            raise ConfigurationError(f"top_k must be >= 1, got {self.top_k}")


@dataclass(frozen=True)
class ChatConfig:
    """Settings for the chat completion provider (OpenAI-compatible endpoint)."""

    model: str = "llama3-8b-8192"
    base_url: Optional[str] = "https://api.groq.com/openai/v1"
    temperature: Optional[float] = None


@dataclass(frozen=True)
class PromptTemplates:
    """Immutable snapshot of the two prompt templates."""

    classification: str = DEFAULT_CLASSIFICATION_PROMPT
    response: str = DEFAULT_RESPONSE_PROMPT

    def __post_init__(self) -> None:
        defaults = {"classification": DEFAULT_CLASSIFICATION_PROMPT, "response": DEFAULT_RESPONSE_PROMPT}
        for name, default in defaults.items():
            value = getattr(self, name)
            if value is None or value == "":
                object.__setattr__(self, name, default)
            elif not isinstance(value, str):
                raise ConfigurationError(f"Prompt template '{name}' must be a string")

    def merged(self, overrides: Mapping[str, Optional[str]]) -> "PromptTemplates":
        """Return a copy with the non-empty ``overrides`` applied."""

        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"Unknown prompt template(s): {', '.join(sorted(unknown))}")
        changes = {name: value for name, value in overrides.items() if value}
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class PipelineConfig:
    """Aggregate configuration for the full pipeline.

    The four credential/endpoint fields are required; a config missing any of
    them cannot be constructed.
    """

    embedding_api_key: str = field(default="", repr=False)
    vector_store_url: str = ""
    vector_store_api_key: str = field(default="", repr=False)
    chat_api_key: str = field(default="", repr=False)
    collection_name: str = DEFAULT_COLLECTION_NAME
    fallback_response: str = DEFAULT_FALLBACK_RESPONSE
    prompts: PromptTemplates = field(default_factory=PromptTemplates)
    chunker: ChunkerConfig = field(default_factory=ChunkerConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = field(default_factory=VectorStoreConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)

    def __post_init__(self) -> None:
        missing = [
            name
            for name in REQUIRED_FIELDS
            if not isinstance(getattr(self, name), str) or not getattr(self, name).strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Required configuration parameters are missing: {', '.join(missing)}"
            )
        # Empty optional values fall back to the defaults.
        if not self.collection_name:
            object.__setattr__(self, "collection_name", DEFAULT_COLLECTION_NAME)
        if not self.fallback_response:
            object.__setattr__(self, "fallback_response", DEFAULT_FALLBACK_RESPONSE)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PipelineConfig":
        """Build a config from a plain mapping, nesting sub-config objects."""

        nested = {
            "prompts": PromptTemplates,
            "chunker": ChunkerConfig,
            "embedding": EmbeddingConfig,
            "vector_store": VectorStoreConfig,
            "chat": ChatConfig,
        }
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                raise ConfigurationError(f"Unknown configuration field: {key}")
            if key in nested and isinstance(value, Mapping):
                try:
                    value = nested[key](**value)
                except TypeError as exc:
                    raise ConfigurationError(f"Invalid '{key}' section: {exc}") from exc
            kwargs[key] = value
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: str | os.PathLike[str]) -> "PipelineConfig":
        """Load a config from a JSON file."""

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as file:
            data = json.load(file)

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a JSON object")
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls, env_file: str | os.PathLike[str] | None = None) -> "PipelineConfig":
        """Load a config from environment variables (and an optional ``.env`` file)."""

        load_dotenv(env_file)

        chat_defaults = ChatConfig()
        return cls(
            embedding_api_key=os.getenv("EMBEDDING_API_KEY") or os.getenv("OPENAI_API_KEY", ""),
            vector_store_url=os.getenv("QDRANT_URL", ""),
            vector_store_api_key=os.getenv("QDRANT_API_KEY", ""),
            chat_api_key=os.getenv("CHAT_API_KEY") or os.getenv("GROQ_API_KEY", ""),
            collection_name=os.getenv("RAG_COLLECTION_NAME", DEFAULT_COLLECTION_NAME),
            fallback_response=os.getenv("RAG_FALLBACK_RESPONSE", DEFAULT_FALLBACK_RESPONSE),
            embedding=EmbeddingConfig(
                model_name=os.getenv("RAG_EMBEDDING_MODEL", EmbeddingConfig.model_name),
            ),
            chat=ChatConfig(
                model=os.getenv("RAG_CHAT_MODEL", chat_defaults.model),
                base_url=os.getenv("RAG_CHAT_BASE_URL", chat_defaults.base_url),
            ),
        )
