"""Embedder protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding service."""

    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed.
            is_query: True for search queries, False for document passages.

        Returns:
            Embedding vector.

        Raises:
            EmbeddingError: Provider unavailable.
            MalformedProviderResponse: Vector absent or non-numeric.
        """
        ...

    async def ping(self) -> bool:
        """Check that the provider answers."""
        ...
