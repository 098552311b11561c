"""Query understanding protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.query import QueryUnderstanding


@runtime_checkable
class QueryUnderstandingProtocol(Protocol):
    """Protocol for LLM-backed intent classification and query rewrite."""

    async def understand(self, query: str) -> QueryUnderstanding:
        """Classify and rewrite a raw user query.

        Args:
            query: Raw user query.

        Returns:
            Search decision, rewritten query and optional threshold.

        Raises:
            ProviderUnavailable: LLM unreachable.
            MalformedProviderResponse: Output does not match the schema.
        """
        ...

    async def ping(self) -> bool:
        """Check that the provider answers."""
        ...
