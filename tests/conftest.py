"""Shared fakes for the pipeline tests."""

from __future__ import annotations

import string
import threading
from typing import List, Optional, Sequence

import pytest

from topic_rag.config import PipelineConfig
from topic_rag.errors import VectorStoreError
from topic_rag.schemas import Point
from topic_rag.vector_store import InMemoryVectorStore


class DummyEmbeddingProvider:
    """Deterministic letter-frequency embeddings."""

    def __init__(self, dimension: int = 27) -> None:
        self.dimension = dimension
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def embed(self, text: str) -> List[float]:
        with self._lock:
            self.calls.append(text)
        lowered = text.lower()
        vector = [float(lowered.count(letter)) for letter in string.ascii_lowercase]
        vector.append(1.0)
        return (vector + [0.0] * self.dimension)[: self.dimension]


class FailingEmbeddingProvider:
    def __init__(self, fail_on: str = "") -> None:
        self.fail_on = fail_on

    def embed(self, text: str) -> List[float]:
        if self.fail_on in text:
            raise TimeoutError("embedding provider timed out")
        return [1.0, 0.0, 0.0]


class ScriptedChatProvider:
    """Answers classification prompts with a fixed label and echoes everything else."""

    def __init__(self, label: Optional[str] = "general", echo: bool = True) -> None:
        self.label = label
        self.echo = echo
        self.calls: List[str] = []

    def complete(self, messages, model: str) -> Optional[str]:
        assert len(messages) == 1 and messages[0]["role"] == "user"
        prompt = messages[0]["content"]
        self.calls.append(prompt)
        if "Please type marks, events or general" in prompt:
            return self.label
        return prompt if self.echo else None


class RecordingVectorStore(InMemoryVectorStore):
    """In-memory store that records upsert batch sizes and can fail on a given batch."""

    def __init__(self, fail_on_batch: Optional[int] = None) -> None:
        super().__init__()
        self.fail_on_batch = fail_on_batch
        self.upserts: List[List[Point]] = []
        self.created: List[tuple[str, int]] = []

    def create_collection(self, name, dimension, config) -> None:
        self.created.append((name, dimension))
        super().create_collection(name, dimension, config)

    def upsert(self, name: str, points: Sequence[Point], wait: bool = True) -> None:
        assert wait is True
        if self.fail_on_batch is not None and len(self.upserts) == self.fail_on_batch:
            self.upserts.append(list(points))
            raise VectorStoreError("connection reset by peer")
        self.upserts.append(list(points))
        super().upsert(name, points, wait=wait)


@pytest.fixture()
def config() -> PipelineConfig:
    return PipelineConfig(
        embedding_api_key="embed-key",
        vector_store_url="http://localhost:6333",
        vector_store_api_key="qdrant-key",
        chat_api_key="chat-key",
        collection_name="test_collection",
        fallback_response="Nothing relevant found.",
    )


@pytest.fixture()
def embedder() -> DummyEmbeddingProvider:
    return DummyEmbeddingProvider()


@pytest.fixture()
def chat() -> ScriptedChatProvider:
    return ScriptedChatProvider()


@pytest.fixture()
def store() -> RecordingVectorStore:
    return RecordingVectorStore()
