"""Embedding generation utilities."""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Iterable, List, Protocol, Sequence, runtime_checkable

from langchain_openai import OpenAIEmbeddings

from . import logger
from .config import EmbeddingConfig
from .errors import EmbeddingError
from .schemas import Chunk


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that maps one text to one fixed-length vector."""

    def embed(self, text: str) -> Sequence[float]: ...


class OpenAIEmbeddingProvider:
    """Embedding provider backed by LangChain's :class:`OpenAIEmbeddings`."""

    def __init__(
        self,
        api_key: str,
        config: EmbeddingConfig | None = None,
        embeddings: OpenAIEmbeddings | None = None,
    ) -> None:
        self.config = config or EmbeddingConfig()
        self._client = embeddings or OpenAIEmbeddings(model=self.config.model_name, api_key=api_key)

    def embed(self, text: str) -> List[float]:
        try:
            return self._client.embed_query(text)
        except Exception as exc:
            raise EmbeddingError(
                f"Embedding request failed ({type(exc).__name__}): {exc}"
            ) from exc


class EmbeddingGateway:
    """Turn text into vectors through an :class:`EmbeddingProvider`.

    Chunks are embedded concurrently on a bounded thread pool; results are
    returned in chunk order regardless of completion order. Nothing is cached.
    """

    def __init__(self, provider: EmbeddingProvider, config: EmbeddingConfig | None = None) -> None:
        self.provider = provider
        self.config = config or EmbeddingConfig()

    def embed(self, text: str) -> List[float]:
        """Return the embedding for a single text."""

        try:
            vector = self.provider.embed(text)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(
                f"Embedding request failed ({type(exc).__name__}): {exc}"
            ) from exc
        return self._validate(vector)

    def embed_chunks(self, chunks: Iterable[Chunk]) -> List[tuple[Chunk, List[float]]]:
        """Return ``(chunk, vector)`` pairs aligned with the input order.

        The first failing call aborts the whole batch: pending calls are
        cancelled and the error propagates as :class:`EmbeddingError`.
        """

        chunk_list = list(chunks)
        if not chunk_list:
            return []

        workers = min(self.config.max_workers, len(chunk_list))
        vectors: List[List[float] | None] = [None] * len(chunk_list)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            future_to_position = {
                pool.submit(self.embed, chunk.text): position
                for position, chunk in enumerate(chunk_list)
            }
            done, pending = wait(future_to_position, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()

            for future in done:
                exc = future.exception()
                if exc is not None:
                    position = future_to_position[future]
                    logger.error(
                        f"Embedding chunk {chunk_list[position].index} failed: {exc}",
                        "embeddings.embed_chunks",
                    )
                    raise exc
                vectors[future_to_position[future]] = future.result()

        dimension = len(vectors[0])
        for position, vector in enumerate(vectors):
            if len(vector) != dimension:
                raise EmbeddingError(
                    f"Inconsistent embedding dimensionality at chunk {chunk_list[position].index}: "
                    f"expected {dimension}, got {len(vector)}"
                )

        logger.debug(
            f"Embedded {len(chunk_list)} chunk(s) with {workers} worker(s), dim={dimension}",
            "embeddings.embed_chunks",
        )
        return list(zip(chunk_list, vectors))

    @staticmethod
    def _validate(vector: Sequence[float]) -> List[float]:
        if vector is None or len(vector) == 0:
            raise EmbeddingError("Embedding provider returned an empty vector")
        try:
            return [float(value) for value in vector]
        except (TypeError, ValueError) as exc:
            raise EmbeddingError("Embedding provider returned a non-numeric vector") from exc
