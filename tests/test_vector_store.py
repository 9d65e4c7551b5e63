"""Tests for collection provisioning, batched upserts and search."""

from __future__ import annotations

import pytest
from qdrant_client import QdrantClient

from conftest import RecordingVectorStore
from topic_rag import vector_store as vector_store_module
from topic_rag.config import VectorStoreConfig
from topic_rag.errors import CollectionNotFoundError, DimensionMismatchError, VectorStoreError
from topic_rag.schemas import Chunk, Point
from topic_rag.vector_store import (
    InMemoryVectorStore,
    PointIdAllocator,
    QdrantVectorStore,
    VectorStoreManager,
    build_points,
)


def _points(count: int, dimension: int = 3, start: int = 0) -> list[Point]:
    return [
        Point(id=start + i, vector=[1.0, float(i), 0.0][:dimension], payload={"text": f"chunk {i}", "chunk_index": i})
        for i in range(count)
    ]


def test_ensure_collection_create_noop_and_mismatch(store: RecordingVectorStore) -> None:
    manager = VectorStoreManager(store)

    assert manager.ensure_collection("docs", 3) is True
    assert store.get_collection("docs").dimension == 3
    assert store.get_collection("docs").distance == "Cosine"

    assert manager.ensure_collection("docs", 3) is False
    assert store.created == [("docs", 3)]

    with pytest.raises(DimensionMismatchError) as excinfo:
        manager.ensure_collection("docs", 768)
    assert excinfo.value.expected == 768
    assert excinfo.value.actual == 3
    assert store.get_collection("docs").dimension == 3


def test_ensure_collection_propagates_other_errors() -> None:
    class BrokenStore(InMemoryVectorStore):
        def get_collection(self, name):
            raise VectorStoreError("401 unauthorized")

    with pytest.raises(VectorStoreError, match="unauthorized"):
        VectorStoreManager(BrokenStore()).ensure_collection("docs", 3)


def test_upsert_in_fixed_batches(store: RecordingVectorStore) -> None:
    manager = VectorStoreManager(store)
    manager.ensure_collection("docs", 3)

    written = manager.upsert_batch("docs", _points(25))

    assert written == 25
    assert [len(batch) for batch in store.upserts] == [10, 10, 5]
    assert [point.id for batch in store.upserts for point in batch] == list(range(25))
    assert store.count("docs") == 25


def test_failed_batch_leaves_committed_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    errors: list[tuple[str, str]] = []
    monkeypatch.setattr(vector_store_module.logger, "error", lambda message, module=None: errors.append((message, module)))
    store = RecordingVectorStore(fail_on_batch=1)
    manager = VectorStoreManager(store)
    manager.ensure_collection("docs", 3)

    with pytest.raises(VectorStoreError):
        manager.upsert_batch("docs", _points(25))

    assert len(store.upserts) == 2
    assert store.count("docs") == 10
    # the caller logs the failure once
    assert errors == []


def test_upsert_replaces_points_with_same_id(store: RecordingVectorStore) -> None:
    manager = VectorStoreManager(store)
    manager.ensure_collection("docs", 3)
    manager.upsert_batch("docs", _points(4))
    manager.upsert_batch("docs", _points(4))
    assert store.count("docs") == 4


def test_search_empty_collection_returns_nothing(store: RecordingVectorStore) -> None:
    manager = VectorStoreManager(store)
    manager.ensure_collection("docs", 3)
    assert manager.search("docs", [1.0, 0.0, 0.0]) == []


def test_search_ranks_by_cosine_similarity(store: RecordingVectorStore) -> None:
    manager = VectorStoreManager(store)
    manager.ensure_collection("docs", 2)
    manager.upsert_batch(
        "docs",
        [
            Point(id=1, vector=[0.0, 1.0], payload={"text": "north"}),
            Point(id=2, vector=[1.0, 0.0], payload={"text": "east"}),
            Point(id=3, vector=[1.0, 1.0], payload={"text": "north-east"}),
            Point(id=4, vector=[-1.0, 0.0], payload={"text": "west"}),
        ],
    )

    results = manager.search("docs", [1.0, 0.1])
    assert [hit.text for hit in results] == ["east", "north-east", "north"]
    assert results[0].score > results[1].score > results[2].score

    assert [hit.text for hit in manager.search("docs", [1.0, 0.1], k=1)] == ["east"]


def test_in_memory_store_reports_missing_collection() -> None:
    with pytest.raises(CollectionNotFoundError):
        InMemoryVectorStore().get_collection("missing")


def test_id_allocator_blocks_never_overlap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(vector_store_module.time, "time", lambda: 1_700_000_000.0)
    allocator = PointIdAllocator()

    first = allocator.reserve(5)
    second = allocator.reserve(3)

    assert first == 1_700_000_000_000
    assert second == first + 5


def test_build_points_offsets_by_chunk_index() -> None:
    chunks = [Chunk(text=f"chunk {i}", index=i, created_at="2024-01-01T00:00:00+00:00") for i in range(3)]
    points = build_points([(chunk, [0.5, 0.5]) for chunk in chunks], PointIdAllocator())

    base = points[0].id
    assert [point.id for point in points] == [base, base + 1, base + 2]
    assert points[2].payload == {
        "text": "chunk 2",
        "chunk_index": 2,
        "timestamp": "2024-01-01T00:00:00+00:00",
    }


def test_qdrant_adapter_against_local_instance() -> None:
    store = QdrantVectorStore(client=QdrantClient(":memory:"))
    manager = VectorStoreManager(store, VectorStoreConfig(upsert_batch_size=2))

    with pytest.raises(CollectionNotFoundError):
        store.get_collection("docs")

    assert manager.ensure_collection("docs", 3) is True
    assert manager.ensure_collection("docs", 3) is False
    with pytest.raises(DimensionMismatchError):
        manager.ensure_collection("docs", 4)

    assert manager.search("docs", [1.0, 0.0, 0.0]) == []

    manager.upsert_batch("docs", _points(5, start=100))
    results = manager.search("docs", [1.0, 0.0, 0.0], k=2)
    assert len(results) == 2
    assert results[0].text == "chunk 0"
    assert results[0].payload["chunk_index"] == 0


def test_qdrant_adapter_requires_url_or_client() -> None:
    with pytest.raises(VectorStoreError):
        QdrantVectorStore()
