"""Query service - coordinates understanding, indexing and retrieval."""

import asyncio
import logging
from typing import Optional

from ..errors import (
    BuildError,
    ConfigurationError,
    DriveSearchError,
    InternalError,
    InvalidQueryError,
    MalformedProviderResponse,
    ProviderUnavailable,
)
from ..models.index import BuildStats, BuildStatus, HealthStatus
from ..models.query import Query, QueryStage, QueryUnderstanding, SearchResponse
from ..protocols.document_source import DocumentSourceProtocol
from ..protocols.embedder import EmbedderProtocol
from ..protocols.understanding import QueryUnderstandingProtocol
from .index_service import IndexService
from .retrieval_service import RetrievalService

logger = logging.getLogger(__name__)

REASON_NOT_A_SEARCH = "not_a_search"
REASON_EMPTY_INDEX = "empty_index"
REASON_CONFIGURATION = "configuration_error"
REASON_PROVIDER = "provider_unavailable"
REASON_FAILED = "search_failed"


class QueryService:
    """Answer search requests end to end.

    ``search`` never raises for a valid query: every failure past
    validation becomes a zero-result response with a reason.
    """

    def __init__(
        self,
        source: DocumentSourceProtocol,
        embedder: EmbedderProtocol,
        index_service: IndexService,
        retrieval: RetrievalService,
        understanding: Optional[QueryUnderstandingProtocol] = None,
        root_id: str = "",
        index_ttl_seconds: float = 900.0,
        top_k_chunks: int = 40,
        top_k_docs: int = 10,
        default_threshold: float = 0.35,
        min_threshold: float = 0.1,
        max_threshold: float = 0.9,
        understanding_timeout: float = 8.0,
        embed_timeout: float = 20.0,
        query_max_length: int = 200,
        health_timeout: float = 120.0,
    ):
        """Initialize query service.

        Args:
            source: Document source (health checks only).
            embedder: Embedding service for queries.
            index_service: Index builder.
            retrieval: Retrieval engine.
            understanding: Query understanding provider; None disables it.
            root_id: Root container to index.
            index_ttl_seconds: Snapshot age that triggers a rebuild.
            top_k_chunks: Chunks fetched per query.
            top_k_docs: Documents returned per query.
            default_threshold: Threshold when none is suggested.
            min_threshold: Lower clamp for suggested thresholds.
            max_threshold: Upper clamp for suggested thresholds.
            understanding_timeout: Timeout for the understanding call.
            embed_timeout: Timeout for the query embedding call.
            query_max_length: Max accepted query length.
            health_timeout: Timeout for each provider ping; the first ping
                may load a local model.
        """
        self._source = source
        self._embedder = embedder
        self._index = index_service
        self._retrieval = retrieval
        self._understanding = understanding
        self._root_id = root_id
        self._ttl = index_ttl_seconds
        self._top_k_chunks = top_k_chunks
        self._top_k_docs = top_k_docs
        self._default_threshold = default_threshold
        self._min_threshold = min_threshold
        self._max_threshold = max_threshold
        self._understanding_timeout = understanding_timeout
        self._embed_timeout = embed_timeout
        self._query_max_length = query_max_length
        self._health_timeout = health_timeout

    def validate_query(self, raw_query: object) -> str:
        """Validate a request's query field.

        Raises:
            InvalidQueryError: Query missing, not text, blank or too long.
        """
        if not isinstance(raw_query, str) or not raw_query.strip():
            raise InvalidQueryError("query is required and must be text")
        if len(raw_query) > self._query_max_length:
            raise InvalidQueryError(
                f"query is too long ({len(raw_query)} > {self._query_max_length} chars)"
            )
        return raw_query.strip()

    def resolve_threshold(self, suggested: Optional[float]) -> float:
        """Clamp a suggested threshold into the valid range, or use the default."""
        if suggested is None:
            return self._default_threshold
        return min(max(suggested, self._min_threshold), self._max_threshold)

    async def search(self, raw_query: str) -> SearchResponse:
        """Search documents for a user query.

        Args:
            raw_query: Query as typed by the user.

        Returns:
            Ranked documents plus how the query was understood.

        Raises:
            InvalidQueryError: Malformed request.
        """
        raw_query = self.validate_query(raw_query)
        stage = QueryStage.RECEIVED
        query = Query(raw_query, raw_query, self._default_threshold)
        used_fallback = False

        try:
            understanding, used_fallback = await self._understand(raw_query)
            query = Query(
                raw_text=raw_query,
                resolved_text=understanding.rewritten_query.strip() or raw_query,
                similarity_threshold=self.resolve_threshold(understanding.suggested_threshold),
            )
            stage = QueryStage.INTENT_RESOLVED

            if not understanding.should_search:
                stage = QueryStage.SHORT_CIRCUIT_NO_SEARCH
                logger.info(f"Not a search, skipping retrieval for '{raw_query[:50]}'")
                return SearchResponse(query, reason=REASON_NOT_A_SEARCH, used_fallback=used_fallback)

            if not self._root_id:
                raise ConfigurationError("root container id is not configured")

            await self._index.ensure_index(self._root_id, self._ttl)
            stage = QueryStage.INDEX_READY

            snapshot = self._index.snapshot
            if snapshot is None and self._index.last_error_reason == BuildError.CONFIGURATION:
                raise ConfigurationError(f"index build misconfigured: {self._index.last_error}")
            if snapshot is None or snapshot.is_empty:
                logger.info("Index is empty, returning no results")
                return SearchResponse(query, reason=REASON_EMPTY_INDEX, used_fallback=used_fallback)

            query_vector = await self._embed_query(query.resolved_text)
            try:
                documents = self._retrieval.retrieve(
                    query_vector,
                    top_k_chunks=self._top_k_chunks,
                    top_k_docs=self._top_k_docs,
                    min_similarity=query.similarity_threshold,
                )
            except Exception as e:
                raise InternalError(f"retrieval failed: {e}") from e
            stage = QueryStage.RETRIEVED

            logger.info(
                f"Search: returned {len(documents)} docs for '{query.resolved_text[:50]}' "
                f"(threshold={query.similarity_threshold:.2f})"
            )
            return SearchResponse(query, documents, used_fallback=used_fallback)

        except ConfigurationError as e:
            logger.error(f"Search misconfigured: {e}")
            return SearchResponse(query, reason=REASON_CONFIGURATION, used_fallback=used_fallback)
        except (ProviderUnavailable, MalformedProviderResponse) as e:
            logger.error(f"Search provider failure at {stage.value}: {e}")
            return SearchResponse(query, reason=REASON_PROVIDER, used_fallback=used_fallback)
        except InternalError:
            logger.exception(f"Search failed at {stage.value}")
            return SearchResponse(query, reason=REASON_FAILED, used_fallback=used_fallback)
        except Exception:
            logger.exception(f"Unexpected error at {stage.value}")
            return SearchResponse(query, reason=REASON_FAILED, used_fallback=used_fallback)
        finally:
            logger.debug(f"Query '{raw_query[:50]}' {stage.value} -> {QueryStage.RESPONDED.value}")

    async def rebuild(self) -> BuildStats | BuildStatus:
        """Force an index build (administrative trigger).

        Raises:
            ConfigurationError: Root container id missing.
            BuildError: Build failed; previous snapshot kept.
        """
        if not self._root_id:
            raise ConfigurationError("root container id is not configured")
        return await self._index.build(self._root_id)

    async def health(self) -> HealthStatus:
        """Report provider reachability and index state."""
        providers = {
            "document_source": await self._ping(self._source),
            "embedder": await self._ping(self._embedder),
        }
        if self._understanding is not None:
            providers["understanding"] = await self._ping(self._understanding)

        snapshot = self._index.snapshot
        return HealthStatus(
            index_present=snapshot is not None,
            built_at=snapshot.built_at if snapshot else None,
            chunk_count=len(snapshot.chunks) if snapshot else 0,
            document_count=len(snapshot.documents) if snapshot else 0,
            build_in_progress=self._index.in_progress,
            last_build_error=self._index.last_error,
            providers=providers,
        )

    async def _understand(self, raw_query: str) -> tuple[QueryUnderstanding, bool]:
        """Ask the understanding provider; fall back to a literal search."""
        if self._understanding is None:
            return QueryUnderstanding.fallback(raw_query), True

        try:
            result = await asyncio.wait_for(
                self._understanding.understand(raw_query), self._understanding_timeout
            )
            return result, False
        except asyncio.TimeoutError:
            logger.warning(f"Query understanding timed out after {self._understanding_timeout}s, using fallback")
        except DriveSearchError as e:
            logger.warning(f"Query understanding failed ({e}), using fallback")
        return QueryUnderstanding.fallback(raw_query), True

    async def _embed_query(self, text: str) -> list[float]:
        try:
            return await asyncio.wait_for(
                self._embedder.embed(text, is_query=True), self._embed_timeout
            )
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(f"query embedding timed out after {self._embed_timeout}s") from e

    async def _ping(self, provider) -> bool:
        try:
            return bool(await asyncio.wait_for(provider.ping(), self._health_timeout))
        except Exception as e:
            logger.warning(f"Health check failed for {type(provider).__name__}: {e}")
            return False
