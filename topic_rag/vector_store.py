"""Vector store adapters for Qdrant and in-memory usage, plus the collection manager."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Protocol, Sequence, runtime_checkable

import numpy as np
from qdrant_client import QdrantClient, models

from . import logger
from .config import VectorStoreConfig
from .errors import CollectionNotFoundError, DimensionMismatchError, RAGError, VectorStoreError
from .schemas import Chunk, CollectionInfo, Point, RetrievedChunk


@runtime_checkable
class VectorStore(Protocol):
    """Narrow interface over a vector database service."""

    def get_collection(self, name: str) -> CollectionInfo: ...

    def create_collection(self, name: str, dimension: int, config: VectorStoreConfig) -> None: ...

    def upsert(self, name: str, points: Sequence[Point], wait: bool = True) -> None: ...

    def search(self, name: str, vector: Sequence[float], limit: int) -> List[RetrievedChunk]: ...


@contextmanager
def _qdrant_errors(action: str, collection: str) -> Iterator[None]:
    try:
        yield
    except RAGError:
        raise
    except Exception as exc:
        logger.error(f"Qdrant {action} on '{collection}' failed: {exc}", "vector_store.qdrant")
        raise VectorStoreError(f"Qdrant {action} on '{collection}' failed: {exc}") from exc


class QdrantVectorStore:
    """:class:`VectorStore` backed by a Qdrant server (or a local ``:memory:`` instance)."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: int = 30,
        client: QdrantClient | None = None,
    ) -> None:
        if client is None and not url:
            raise VectorStoreError("A Qdrant URL or client is required")
        self._url = url
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> QdrantClient:
        # Created on first use so that building a pipeline never touches the network.
        if self._client is None:
            self._client = QdrantClient(url=self._url, api_key=self._api_key, timeout=self._timeout)
        return self._client

    def get_collection(self, name: str) -> CollectionInfo:
        with _qdrant_errors("get_collection", name):
            if not self.client.collection_exists(name):
                raise CollectionNotFoundError(f"Collection '{name}' does not exist")
            info = self.client.get_collection(name)

        vectors = info.config.params.vectors
        if isinstance(vectors, models.VectorParams):
            return CollectionInfo(name=name, dimension=vectors.size, distance=str(vectors.distance.value))
        # Named or missing vector config has no single declared size.
        return CollectionInfo(name=name, dimension=None, distance=None)

    def create_collection(self, name: str, dimension: int, config: VectorStoreConfig) -> None:
        with _qdrant_errors("create_collection", name):
            self.client.create_collection(
                collection_name=name,
                vectors_config=models.VectorParams(
                    size=dimension,
                    distance=models.Distance(config.distance),
                ),
                optimizers_config=models.OptimizersConfigDiff(
                    default_segment_number=config.default_segment_number,
                ),
                replication_factor=config.replication_factor,
                write_consistency_factor=config.write_consistency_factor,
            )

    def upsert(self, name: str, points: Sequence[Point], wait: bool = True) -> None:
        structs = [
            models.PointStruct(id=point.id, vector=list(point.vector), payload=dict(point.payload))
            for point in points
        ]
        with _qdrant_errors("upsert", name):
            self.client.upsert(collection_name=name, points=structs, wait=wait)

    def search(self, name: str, vector: Sequence[float], limit: int) -> List[RetrievedChunk]:
        with _qdrant_errors("search", name):
            response = self.client.query_points(
                collection_name=name,
                query=list(vector),
                limit=limit,
                with_payload=True,
            )
        results = []
        for hit in response.points:
            payload = dict(hit.payload or {})
            results.append(
                RetrievedChunk(
                    id=hit.id,
                    text=str(payload.get("text") or ""),
                    score=float(hit.score),
                    payload=payload,
                )
            )
        return results


class InMemoryVectorStore:
    """Numpy-backed :class:`VectorStore` for tests and offline runs.

    Points are keyed by id, so upserting an existing id replaces it.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, dict] = {}
        self._lock = threading.RLock()

    def get_collection(self, name: str) -> CollectionInfo:
        with self._lock:
            collection = self._collections.get(name)
            if collection is None:
                raise CollectionNotFoundError(f"Collection '{name}' does not exist")
            return CollectionInfo(name=name, dimension=collection["dimension"], distance=collection["distance"])

    def create_collection(self, name: str, dimension: int, config: VectorStoreConfig) -> None:
        if config.distance not in {"Cosine", "Dot", "Euclid"}:
            raise VectorStoreError(f"Unsupported distance: {config.distance}")
        with self._lock:
            if name in self._collections:
                raise VectorStoreError(f"Collection '{name}' already exists")
            self._collections[name] = {
                "dimension": dimension,
                "distance": config.distance,
                "points": {},
            }

    def upsert(self, name: str, points: Sequence[Point], wait: bool = True) -> None:
        with self._lock:
            collection = self._require(name)
            for point in points:
                if len(point.vector) != collection["dimension"]:
                    raise VectorStoreError(
                        f"Wrong vector dimension for point {point.id}: expected "
                        f"{collection['dimension']}, got {len(point.vector)}"
                    )
            for point in points:
                collection["points"][point.id] = (
                    np.asarray(point.vector, dtype="float32"),
                    dict(point.payload),
                )

    def search(self, name: str, vector: Sequence[float], limit: int) -> List[RetrievedChunk]:
        with self._lock:
            collection = self._require(name)
            if not collection["points"]:
                return []
            ids = list(collection["points"])
            doc_matrix = np.vstack([collection["points"][point_id][0] for point_id in ids])
            payloads = [collection["points"][point_id][1] for point_id in ids]
            distance = collection["distance"]

        query_vec = np.asarray(vector, dtype="float32")
        if distance == "Cosine":
            norms = np.linalg.norm(doc_matrix, axis=1) * np.linalg.norm(query_vec) + 1e-12
            scores = (doc_matrix @ query_vec) / norms
        elif distance == "Dot":
            scores = doc_matrix @ query_vec
        else:
            scores = -np.linalg.norm(doc_matrix - query_vec, axis=1)

        # stable sort keeps insertion order among equal scores
        top_indices = np.argsort(-scores, kind="stable")[:limit]
        return [
            RetrievedChunk(
                id=ids[idx],
                text=str(payloads[idx].get("text") or ""),
                score=float(scores[idx]),
                payload=dict(payloads[idx]),
            )
            for idx in top_indices
        ]

    def count(self, name: str) -> int:
        with self._lock:
            return len(self._require(name)["points"])

    def _require(self, name: str) -> dict:
        collection = self._collections.get(name)
        if collection is None:
            raise VectorStoreError(f"Collection '{name}' does not exist")
        return collection


class PointIdAllocator:
    """Hand out blocks of point ids that never overlap within the process.

    Each block starts at the current time in milliseconds, or right after the
    previous block when that is later.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_free = 0

    def reserve(self, count: int) -> int:
        with self._lock:
            base = max(int(time.time() * 1000), self._next_free)
            self._next_free = base + count
            return base


_default_allocator = PointIdAllocator()


def build_points(
    pairs: Iterable[tuple[Chunk, Sequence[float]]],
    allocator: PointIdAllocator | None = None,
) -> List[Point]:
    """Package embedded chunks as points with ids ``base + chunk.index``."""

    pair_list = list(pairs)
    if not pair_list:
        return []
    span = max(chunk.index for chunk, _ in pair_list) + 1
    base = (allocator or _default_allocator).reserve(span)
    return [
        Point(id=base + chunk.index, vector=list(vector), payload=chunk.payload())
        for chunk, vector in pair_list
    ]


class VectorStoreManager:
    """Collection provisioning, batched upserts and similarity search."""

    def __init__(self, store: VectorStore, config: VectorStoreConfig | None = None) -> None:
        self.store = store
        self.config = config or VectorStoreConfig()

    def ensure_collection(self, name: str, vector_size: int) -> bool:
        """Make sure ``name`` exists with ``vector_size`` dimensions.

        Returns ``True`` when the collection was created. An existing collection
        with a different size raises :class:`DimensionMismatchError` and is left
        untouched.
        """

        try:
            info = self.store.get_collection(name)
        except CollectionNotFoundError:
            logger.info(
                f"Creating collection '{name}' (size={vector_size}, distance={self.config.distance})",
                "vector_store.ensure_collection",
            )
            self.store.create_collection(name, vector_size, self.config)
            return True

        if info.dimension != vector_size:
            logger.error(
                f"Collection '{name}' has size {info.dimension}, embeddings have {vector_size}",
                "vector_store.ensure_collection",
            )
            raise DimensionMismatchError(name, vector_size, info.dimension)
        logger.debug(f"Collection '{name}' already exists with size {vector_size}", "vector_store.ensure_collection")
        return False

    def upsert_batch(self, name: str, points: Sequence[Point], batch_size: int | None = None) -> int:
        """Upsert ``points`` in order, one acknowledged batch at a time.

        A failing batch propagates its error; the batches before it stay
        committed and nothing is retried.
        """

        size = batch_size or self.config.upsert_batch_size
        committed = 0
        for start in range(0, len(points), size):
            batch = list(points[start : start + size])
            self.store.upsert(name, batch, wait=True)
            committed += len(batch)
            logger.debug(f"Upserted {committed}/{len(points)} point(s) into '{name}'", "vector_store.upsert_batch")
        logger.info(f"Indexed {committed} point(s) into '{name}'", "vector_store.upsert_batch")
        return committed

    def search(self, name: str, vector: Sequence[float], k: int | None = None) -> List[RetrievedChunk]:
        """Return up to ``k`` nearest points, best first. Empty when nothing matches."""

        limit = self.config.top_k if k is None else k
        if limit < 1:
            return []
        results = self.store.search(name, vector, limit)
        logger.debug(f"Search in '{name}' returned {len(results)} result(s)", "vector_store.search")
        return results[:limit]
