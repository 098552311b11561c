"""Document source protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.document import DocumentRef


@runtime_checkable
class DocumentSourceProtocol(Protocol):
    """Protocol for a file repository holding the corpus."""

    async def list_all_documents(self, root_id: str) -> list[DocumentRef]:
        """Recursively list files under a root container.

        Args:
            root_id: Root folder identifier.

        Returns:
            Documents in listing order.

        Raises:
            BuildError: Root container does not exist.
            ProviderUnavailable: Source unreachable or unauthenticated.
        """
        ...

    async def extract_text(self, ref: DocumentRef) -> str:
        """Export plain text for a document.

        Returns an empty string for unsupported types.
        """
        ...

    async def ping(self) -> bool:
        """Check that the source answers."""
        ...
