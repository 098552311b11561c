"""Index service - builds and refreshes the in-memory index."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..errors import (
    BuildError,
    ConfigurationError,
    EmbeddingError,
    MalformedProviderResponse,
    ProviderUnavailable,
)
from ..models.document import Chunk, DocumentRef
from ..models.index import BuildStats, BuildStatus, IndexSnapshot, utcnow
from ..protocols.document_source import DocumentSourceProtocol
from ..protocols.embedder import EmbedderProtocol
from ..protocols.vector_store import VectorStoreProtocol
from ..strategies.chunking import FixedWindowChunker

logger = logging.getLogger(__name__)


class IndexService:
    """Service for building index snapshots from a document source.

    At most one build runs at a time. A build either installs a complete
    new snapshot or leaves the previous one in place.
    """

    def __init__(
        self,
        source: DocumentSourceProtocol,
        embedder: EmbedderProtocol,
        vector_store: VectorStoreProtocol,
        chunker: FixedWindowChunker,
        embed_concurrency: int = 4,
        source_timeout: float = 30.0,
        embed_timeout: float = 20.0,
        list_timeout: Optional[float] = 600.0,
    ):
        """Initialize index service.

        Args:
            source: Document source.
            embedder: Embedding service.
            vector_store: Vector store receiving finished snapshots.
            chunker: Text chunker.
            embed_concurrency: Max embedding calls in flight during a build.
            source_timeout: Timeout for each text extraction call.
            embed_timeout: Timeout for each embedding call.
            list_timeout: Budget for the whole document listing walk; None
                leaves it to the source's own per-request timeouts.
        """
        self._source = source
        self._embedder = embedder
        self._vector_store = vector_store
        self._chunker = chunker
        self._embed_concurrency = embed_concurrency
        self._source_timeout = source_timeout
        self._embed_timeout = embed_timeout
        self._list_timeout = list_timeout

        self._build_task: Optional[asyncio.Task] = None
        self._build_started_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._last_error_reason: Optional[str] = None

    @property
    def in_progress(self) -> bool:
        return self._build_task is not None and not self._build_task.done()

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def last_error_reason(self) -> Optional[str]:
        """BuildError reason of the last failed pass, None after a success."""
        return self._last_error_reason

    @property
    def snapshot(self) -> Optional[IndexSnapshot]:
        return self._vector_store.snapshot

    def status(self) -> BuildStatus:
        snapshot = self._vector_store.snapshot
        return BuildStatus(
            in_progress=self.in_progress,
            started_at=self._build_started_at if self.in_progress else None,
            last_built_at=snapshot.built_at if snapshot else None,
        )

    async def build(self, root_id: str) -> BuildStats | BuildStatus:
        """Run a build pass, unless one is already running.

        Args:
            root_id: Root container to index.

        Returns:
            BuildStats of the finished pass, or the in-progress BuildStatus
            when another build was already running.

        Raises:
            BuildError: Build failed as a whole.
        """
        if self.in_progress:
            logger.info(f"Build already in progress since {self._build_started_at}, not starting another")
            return self.status()

        task = self._start(root_id)
        return await asyncio.shield(task)

    async def ensure_index(self, root_id: str, ttl_seconds: float) -> None:
        """Make sure a fresh snapshot exists, building or joining a build if needed.

        Build failures are logged and swallowed; the caller proceeds with
        whatever snapshot is active.
        """
        snapshot = self._vector_store.snapshot
        if snapshot is not None and snapshot.age_seconds() <= ttl_seconds:
            return

        if snapshot is None:
            logger.info("No index snapshot, building")
        else:
            logger.info(f"Index snapshot stale ({snapshot.age_seconds():.0f}s > {ttl_seconds}s), rebuilding")

        task = self._build_task if self.in_progress else self._start(root_id)
        try:
            await asyncio.shield(task)
        except BuildError as e:
            logger.warning(f"Index build failed, continuing with current snapshot: {e}")

    def _start(self, root_id: str) -> asyncio.Task:
        # Called without an intervening await after the in_progress check,
        # so two callers cannot both start a pass.
        self._build_started_at = utcnow()
        self._build_task = asyncio.create_task(self._run(root_id))
        self._build_task.add_done_callback(self._on_build_done)
        return self._build_task

    def _on_build_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            self._last_error = "cancelled"
            self._last_error_reason = None
            return
        exc = task.exception()
        self._last_error = str(exc) if exc else None
        self._last_error_reason = exc.reason if isinstance(exc, BuildError) else None

    async def _run(self, root_id: str) -> BuildStats:
        """Run one pass; every failure leaves the task as a BuildError."""
        try:
            return await self._run_pass(root_id)
        except BuildError:
            raise
        except ConfigurationError as e:
            raise BuildError(BuildError.CONFIGURATION, str(e)) from e
        except ProviderUnavailable as e:
            raise BuildError(BuildError.PROVIDER_UNAVAILABLE, str(e)) from e
        except MalformedProviderResponse as e:
            raise BuildError(BuildError.SOURCE_FAILURE, str(e)) from e
        except Exception as e:
            logger.exception(f"Index build for root '{root_id}' failed unexpectedly")
            raise BuildError(BuildError.SOURCE_FAILURE, f"{type(e).__name__}: {e}") from e

    async def _run_pass(self, root_id: str) -> BuildStats:
        stats = BuildStats()
        logger.info(f"Index build started for root '{root_id}'")

        # Listing walks every folder page by page; each request carries the
        # source's own timeout, this only caps the walk as a whole.
        try:
            refs = await asyncio.wait_for(
                self._source.list_all_documents(root_id), self._list_timeout
            )
        except asyncio.TimeoutError as e:
            raise BuildError(
                BuildError.PROVIDER_UNAVAILABLE,
                f"document listing exceeded {self._list_timeout}s",
            ) from e

        semaphore = asyncio.Semaphore(self._embed_concurrency)
        chunks: list[Chunk] = []
        documents: dict[str, DocumentRef] = {}
        dimension: Optional[int] = None
        embed_errors = 0
        seen: set[str] = set()

        for ref in refs:
            if ref.id in seen:
                continue
            seen.add(ref.id)
            stats.documents_seen += 1

            text = await self._extract(ref)
            pieces = self._chunker.chunk(text)
            if not pieces:
                logger.debug(f"Skip (no text): {ref.display_name}")
                stats.skipped_no_text += 1
                continue

            try:
                vectors = await self._embed_document(pieces, semaphore)
                expected = dimension or len(vectors[0])
                if any(len(v) != expected for v in vectors):
                    raise MalformedProviderResponse(
                        f"vector dimension differs from index dimension {expected}"
                    )
            except (ProviderUnavailable, MalformedProviderResponse) as e:
                logger.warning(f"Skip (embedding failed): {ref.display_name}: {e}")
                stats.skipped_failed += 1
                if isinstance(e, EmbeddingError):
                    embed_errors += 1
                continue

            chunks.extend(
                Chunk.create(ref.id, i, piece, vector)
                for i, (piece, vector) in enumerate(zip(pieces, vectors))
            )
            documents[ref.id] = ref
            dimension = expected
            stats.documents_indexed += 1
            logger.info(
                f"Indexed document {stats.documents_indexed}/{len(refs)}: "
                f"{ref.display_name} ({len(pieces)} chunks)"
            )

        if stats.skipped_failed and stats.documents_indexed == 0:
            raise BuildError(
                BuildError.PROVIDER_UNAVAILABLE if embed_errors else BuildError.MALFORMED_RESPONSE,
                f"embedding failed for all {stats.skipped_failed} indexable documents",
            )

        stats.chunks_total = len(chunks)
        stats.finished_at = utcnow()
        self._vector_store.replace(
            IndexSnapshot(chunks=tuple(chunks), documents=documents, built_at=stats.finished_at)
        )

        logger.info(
            f"Index build complete: {stats.chunks_total} chunks from "
            f"{stats.documents_indexed}/{stats.documents_seen} documents "
            f"(no text: {stats.skipped_no_text}, failed: {stats.skipped_failed})"
        )
        return stats

    async def _extract(self, ref: DocumentRef) -> str:
        """Extract text; any failure counts as an empty document."""
        try:
            text = await asyncio.wait_for(self._source.extract_text(ref), self._source_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Text extraction timed out: {ref.display_name}")
            return ""
        except Exception as e:
            logger.error(f"Failed to extract {ref.display_name}: {e}")
            return ""
        return text or ""

    async def _embed_document(
        self, pieces: list[str], semaphore: asyncio.Semaphore
    ) -> list[list[float]]:
        """Embed all chunks of one document; any failure fails the document."""

        async def embed_one(text: str) -> list[float]:
            async with semaphore:
                try:
                    vector = await asyncio.wait_for(
                        self._embedder.embed(text), self._embed_timeout
                    )
                except asyncio.TimeoutError as e:
                    raise EmbeddingError(
                        f"embedding timed out after {self._embed_timeout}s"
                    ) from e
            if not vector or not all(isinstance(x, (int, float)) for x in vector):
                raise MalformedProviderResponse("embedding vector empty or non-numeric")
            return list(vector)

        results = await asyncio.gather(
            *(embed_one(p) for p in pieces), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results
