"""Retrieval service - chunk search with per-document aggregation."""

import logging

from ..models.document import Chunk, ScoredDocument
from ..protocols.vector_store import VectorStoreProtocol

logger = logging.getLogger(__name__)


class RetrievalService:
    """Rank documents by their best-matching chunk."""

    def __init__(self, vector_store: VectorStoreProtocol, snippet_length: int = 240):
        """Initialize retrieval service.

        Args:
            vector_store: Vector store to search.
            snippet_length: Max characters of the best chunk shown as preview.
        """
        self._vector_store = vector_store
        self._snippet_length = snippet_length

    def retrieve(
        self,
        query_vector: list[float],
        top_k_chunks: int,
        top_k_docs: int,
        min_similarity: float,
    ) -> list[ScoredDocument]:
        """Retrieve ranked documents for a query vector.

        A document scores the maximum similarity of its retrieved chunks;
        the chunk holding that maximum becomes the snippet.

        Args:
            query_vector: Embedded query.
            top_k_chunks: Chunks fetched from the index.
            top_k_docs: Max documents returned.
            min_similarity: Documents scoring below this are dropped.

        Returns:
            Documents sorted by descending score.
        """
        snapshot = self._vector_store.snapshot
        if snapshot is None or snapshot.is_empty:
            return []

        hits = self._vector_store.search(query_vector, top_k=top_k_chunks)

        # Hits arrive best first, so the first hit per document is its max.
        best: dict[str, tuple[Chunk, float]] = {}
        for chunk, score in hits:
            current = best.get(chunk.document_id)
            if current is None or score > current[1]:
                best[chunk.document_id] = (chunk, score)

        ranked = sorted(
            (item for item in best.values() if item[1] >= min_similarity),
            key=lambda item: item[1],
            reverse=True,
        )[:top_k_docs]

        documents = []
        for chunk, score in ranked:
            ref = snapshot.documents.get(chunk.document_id)
            if ref is None:
                logger.warning(f"Chunk {chunk.chunk_id} references unknown document {chunk.document_id}")
                continue
            documents.append(
                ScoredDocument(
                    document_id=ref.id,
                    display_name=ref.display_name,
                    view_url=ref.view_url,
                    modified_at=ref.modified_at,
                    score=score,
                    best_snippet=self._snippet(chunk.text),
                )
            )

        logger.info(
            f"Retrieve: {len(hits)} chunks -> {len(best)} documents -> "
            f"{len(documents)} above {min_similarity:.2f}"
        )
        return documents

    def _snippet(self, text: str) -> str:
        if len(text) <= self._snippet_length:
            return text
        return text[: self._snippet_length].rstrip() + "…"
