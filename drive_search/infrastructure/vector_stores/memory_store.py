import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from drive_search.core.models.document import Chunk
from drive_search.core.models.index import IndexSnapshot
from drive_search.core.strategies.similarity import cosine_scores

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Generation:
    snapshot: IndexSnapshot
    matrix: np.ndarray


class InMemoryVectorStore:
    """Brute-force cosine index over an immutable snapshot.

    The active generation (snapshot plus its vector matrix) is held in a
    single attribute and replaced as a whole; a search reads it once and
    keeps using that generation even if a newer one is installed meanwhile.
    """

    def __init__(self):
        self._generation: Optional[_Generation] = None

    @property
    def snapshot(self) -> IndexSnapshot | None:
        generation = self._generation
        return generation.snapshot if generation else None

    @property
    def is_empty(self) -> bool:
        generation = self._generation
        return generation is None or generation.snapshot.is_empty

    def replace(self, snapshot: IndexSnapshot) -> None:
        """Install a new snapshot.

        Raises:
            ValueError: Chunks carry vectors of different lengths.
        """
        dims = {len(c.vector) for c in snapshot.chunks}
        if len(dims) > 1:
            raise ValueError(f"Inconsistent vector dimensions in snapshot: {sorted(dims)}")

        if snapshot.chunks:
            matrix = np.array([c.vector for c in snapshot.chunks], dtype=np.float64)
        else:
            matrix = np.zeros((0, 0), dtype=np.float64)
        matrix.setflags(write=False)

        self._generation = _Generation(snapshot=snapshot, matrix=matrix)
        logger.info(
            f"Index replaced: {len(snapshot.chunks)} chunks, "
            f"{len(snapshot.documents)} documents"
        )

    def search(self, query_vector: list[float], top_k: int = 10) -> list[tuple[Chunk, float]]:
        """Top-k chunks by cosine similarity, ties kept in insertion order."""
        generation = self._generation
        if generation is None or generation.snapshot.is_empty or top_k <= 0:
            return []

        query = np.asarray(query_vector, dtype=np.float64)
        if query.shape[0] != generation.matrix.shape[1]:
            logger.warning(
                f"Query dimension {query.shape[0]} != index dimension "
                f"{generation.matrix.shape[1]}, comparing common prefix"
            )

        scores = cosine_scores(query, generation.matrix)
        order = np.argsort(-scores, kind="stable")[:top_k]
        chunks = generation.snapshot.chunks
        return [(chunks[i], float(scores[i])) for i in order]

    def count(self) -> int:
        generation = self._generation
        return len(generation.snapshot.chunks) if generation else 0
