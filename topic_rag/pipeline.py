"""End-to-end orchestration: classify, index, retrieve, respond."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, List, Mapping, Optional

from . import logger
from .classifier import QueryClassifier
from .config import PipelineConfig, PromptTemplates
from .embeddings import EmbeddingGateway, EmbeddingProvider, OpenAIEmbeddingProvider
from .errors import EmptyInputError
from .llm import ChatProvider, OpenAIChatProvider
from .responder import Responder
from .schemas import QueryResult, RetrievedChunk
from .segment import TextChunker
from .vector_store import PointIdAllocator, QdrantVectorStore, VectorStore, VectorStoreManager, build_points


class PipelineStage(str, Enum):
    IDLE = "idle"
    CLASSIFYING = "classifying"
    INDEXING = "indexing"
    RETRIEVING = "retrieving"
    RESPONDING = "responding"
    DONE = "done"
    FAILED = "failed"


class RAGPipeline:
    """Answer a query against a reference text, tagging it with a topic label.

    Every :meth:`process_query` call re-indexes the source text before
    searching, so answers always reflect the text passed in. Collaborators not
    supplied explicitly are built from ``config``: OpenAI embeddings, a Qdrant
    server, and an OpenAI-compatible chat endpoint.
    """

    def __init__(
        self,
        config: PipelineConfig | Mapping[str, Any],
        embedding_provider: EmbeddingProvider | None = None,
        vector_store: VectorStore | None = None,
        chat_provider: ChatProvider | None = None,
        chunker: TextChunker | None = None,
        id_allocator: PointIdAllocator | None = None,
    ) -> None:
        if not isinstance(config, PipelineConfig):
            config = PipelineConfig.from_mapping(config)
        self.config = config

        embedding_provider = embedding_provider or OpenAIEmbeddingProvider(
            api_key=config.embedding_api_key,
            config=config.embedding,
        )
        vector_store = vector_store or QdrantVectorStore(
            url=config.vector_store_url,
            api_key=config.vector_store_api_key,
            timeout=config.vector_store.timeout,
        )
        chat_provider = chat_provider or OpenAIChatProvider(
            api_key=config.chat_api_key,
            config=config.chat,
        )

        self.chunker = chunker or TextChunker(config.chunker)
        self.embeddings = EmbeddingGateway(embedding_provider, config.embedding)
        self.vector_store = VectorStoreManager(vector_store, config.vector_store)
        self.classifier = QueryClassifier(chat_provider, config.chat.model)
        self.responder = Responder(chat_provider, config.chat.model, config.fallback_response)
        self.id_allocator = id_allocator or PointIdAllocator()

        self._prompts: PromptTemplates = config.prompts
        self._prompts_lock = threading.Lock()

    @property
    def collection_name(self) -> str:
        return self.config.collection_name

    @property
    def prompts(self) -> PromptTemplates:
        """The prompt snapshot new calls will use."""

        return self._prompts

    def update_prompts(self, new_prompts: Mapping[str, Optional[str]] | None = None, **overrides: Optional[str]) -> PromptTemplates:
        """Merge template overrides into the current prompts.

        Fields not given keep their value. Calls already running finish with the
        snapshot they started with.
        """

        changes = {**(new_prompts or {}), **overrides}
        with self._prompts_lock:
            self._prompts = self._prompts.merged(changes)
            updated = self._prompts
        logger.info(
            f"Prompt templates updated: {', '.join(sorted(k for k, v in changes.items() if v)) or 'none'}",
            "pipeline.update_prompts",
        )
        return updated

    def index(self, source_text: str) -> int:
        """Chunk, embed and upsert ``source_text``. Returns the number of points written."""

        chunks = self.chunker.split(source_text)
        embedded = self.embeddings.embed_chunks(chunks)
        if not embedded:
            raise EmptyInputError("Source text produced no chunks to index")

        vector_size = len(embedded[0][1])
        self.vector_store.ensure_collection(self.collection_name, vector_size)

        points = build_points(embedded, self.id_allocator)
        return self.vector_store.upsert_batch(self.collection_name, points)

    def retrieve(self, query: str, k: int | None = None) -> List[RetrievedChunk]:
        """Return the chunks most similar to ``query``."""

        query_vector = self.embeddings.embed(query)
        return self.vector_store.search(self.collection_name, query_vector, k)

    def process_query(self, source_text: str, query: str) -> QueryResult:
        """Run the whole pipeline for one query.

        Any failure aborts the call; no partial result is returned.
        """

        prompts = self._prompts
        stage = PipelineStage.IDLE
        try:
            stage = self._enter(PipelineStage.CLASSIFYING)
            category = self.classifier.classify(query, prompts.classification)

            stage = self._enter(PipelineStage.INDEXING)
            self.index(source_text)

            stage = self._enter(PipelineStage.RETRIEVING)
            chunks = self.retrieve(query)

            stage = self._enter(PipelineStage.RESPONDING)
            answer = self.responder.respond(query, chunks, prompts.response)
        except Exception as exc:
            logger.error(
                f"Error processing query during {stage.value}: {type(exc).__name__}: {exc}",
                "pipeline.process_query",
            )
            self._enter(PipelineStage.FAILED)
            raise

        self._enter(PipelineStage.DONE)
        return QueryResult(answer=answer, category=category)

    @staticmethod
    def _enter(stage: PipelineStage) -> PipelineStage:
        logger.debug(f"Pipeline stage -> {stage.value}", "pipeline.process_query")
        return stage


def create_pipeline(config: PipelineConfig | Mapping[str, Any], **collaborators: Any) -> RAGPipeline:
    """Convenience factory mirroring :class:`RAGPipeline`'s constructor."""

    return RAGPipeline(config, **collaborators)
