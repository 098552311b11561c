import logging
import math

from openai import APIError, AsyncOpenAI

from drive_search.core.errors import EmbeddingError, MalformedProviderResponse

logger = logging.getLogger(__name__)


class OpenAIEmbedder:
    """Embedder for OpenAI-compatible /embeddings endpoints (e.g. Ollama)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "nomic-embed-text",
        api_key: str = "ollama",
    ):
        """Initialize embedder.

        Args:
            base_url: API URL.
            model: Embedding model name.
            api_key: API key (any value for Ollama).
        """
        self._client = AsyncOpenAI(base_url=base_url, api_key=api_key)
        self._model = model

    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        try:
            response = await self._client.embeddings.create(model=self._model, input=text)
        except APIError as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        if not response.data:
            raise MalformedProviderResponse("Embedding response has no data")
        vector = response.data[0].embedding
        if not vector or not all(
            isinstance(x, (int, float)) and math.isfinite(x) for x in vector
        ):
            raise MalformedProviderResponse("Embedding vector empty or non-numeric")
        return [float(x) for x in vector]

    async def ping(self) -> bool:
        try:
            await self._client.models.list()
        except APIError as e:
            logger.warning(f"Embedding endpoint unavailable: {e}")
            return False
        return True
