import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from .core.protocols.document_source import DocumentSourceProtocol
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.understanding import QueryUnderstandingProtocol
    from .core.protocols.vector_store import VectorStoreProtocol
    from .core.services.index_service import IndexService
    from .core.services.query_service import QueryService
    from .core.services.retrieval_service import RetrievalService
    from .core.strategies.chunking import FixedWindowChunker
    from .infrastructure.document_sources import DriveDocumentSource, LocalDocumentSource
    from .infrastructure.llm.ollama_client import OllamaUnderstandingClient
    from .infrastructure.vector_stores.memory_store import InMemoryVectorStore

    def make_source() -> DocumentSourceProtocol:
        if settings.document_source == "local":
            return LocalDocumentSource(docs_path=settings.docs_path)
        return DriveDocumentSource(
            access_token=settings.drive_access_token,
            api_url=settings.drive_api_url,
            timeout=settings.source_timeout,
        )

    def make_embedder() -> EmbedderProtocol:
        if settings.embedding_backend == "openai":
            from .infrastructure.embeddings.openai_embedder import OpenAIEmbedder

            return OpenAIEmbedder(
                base_url=settings.embedding_base_url,
                model=settings.embedding_model,
                api_key=settings.embedding_api_key,
            )
        from .infrastructure.embeddings.sentence_transformer import (
            SentenceTransformerEmbedder,
        )

        return SentenceTransformerEmbedder(settings.embedding_model)

    container.register(DocumentSourceProtocol, make_source, singleton=True)

    container.register(EmbedderProtocol, make_embedder, singleton=True)

    container.register(VectorStoreProtocol, InMemoryVectorStore, singleton=True)

    container.register(
        QueryUnderstandingProtocol,
        lambda: OllamaUnderstandingClient(
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        ),
        singleton=True,
    )

    container.register(
        FixedWindowChunker,
        lambda: FixedWindowChunker(
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            max_chars=settings.max_chars_per_document,
        ),
        singleton=True,
    )

    container.register(
        IndexService,
        lambda: IndexService(
            source=container.resolve(DocumentSourceProtocol),
            embedder=container.resolve(EmbedderProtocol),
            vector_store=container.resolve(VectorStoreProtocol),
            chunker=container.resolve(FixedWindowChunker),
            embed_concurrency=settings.embed_concurrency,
            source_timeout=settings.source_timeout,
            embed_timeout=settings.embed_timeout,
            list_timeout=settings.list_timeout,
        ),
        singleton=True,
    )

    container.register(
        RetrievalService,
        lambda: RetrievalService(
            vector_store=container.resolve(VectorStoreProtocol),
            snippet_length=settings.snippet_length,
        ),
        singleton=True,
    )

    container.register(
        QueryService,
        lambda: QueryService(
            source=container.resolve(DocumentSourceProtocol),
            embedder=container.resolve(EmbedderProtocol),
            index_service=container.resolve(IndexService),
            retrieval=container.resolve(RetrievalService),
            understanding=(
                container.resolve(QueryUnderstandingProtocol)
                if settings.understanding_enabled
                else None
            ),
            root_id=settings.root_id,
            index_ttl_seconds=settings.index_ttl_seconds,
            top_k_chunks=settings.top_k_chunks,
            top_k_docs=settings.top_k_docs,
            default_threshold=settings.default_threshold,
            min_threshold=settings.min_threshold,
            max_threshold=settings.max_threshold,
            understanding_timeout=settings.understanding_timeout,
            embed_timeout=settings.embed_timeout,
            query_max_length=settings.query_max_length,
            health_timeout=settings.health_timeout,
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return container
