"""Vector store protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.document import Chunk
from ..models.index import IndexSnapshot


@runtime_checkable
class VectorStoreProtocol(Protocol):
    """Protocol for snapshot-based vector storage."""

    @property
    def snapshot(self) -> IndexSnapshot | None:
        """Active snapshot, or None before the first build."""
        ...

    def replace(self, snapshot: IndexSnapshot) -> None:
        """Atomically install a fully built snapshot.

        Args:
            snapshot: New index generation.
        """
        ...

    def search(
        self,
        query_vector: list[float],
        top_k: int = 10,
    ) -> list[tuple[Chunk, float]]:
        """Search by embedding.

        Args:
            query_vector: Query vector.
            top_k: Number of chunks to return.

        Returns:
            (chunk, similarity) pairs, best first.
        """
        ...

    def count(self) -> int:
        """Get chunk count."""
        ...
