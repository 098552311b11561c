import asyncio
import logging
from functools import cached_property

import numpy as np
from sentence_transformers import SentenceTransformer

from drive_search.core.errors import EmbeddingError, MalformedProviderResponse

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    def __init__(self, model_name: str = "intfloat/multilingual-e5-base"):
        self._model_name = model_name
        # e5 models expect "query: " / "passage: " prefixes
        self._use_prefixes = "e5" in model_name.lower()

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    def _encode(self, text: str) -> np.ndarray:
        return self.model.encode(text, convert_to_numpy=True)

    async def embed(self, text: str, *, is_query: bool = False) -> list[float]:
        if self._use_prefixes:
            text = f"query: {text}" if is_query else f"passage: {text}"
        try:
            vector = await asyncio.to_thread(self._encode, text)
        except (OSError, RuntimeError) as e:
            raise EmbeddingError(f"Embedding model failed: {e}") from e

        vector = np.asarray(vector, dtype=np.float64)
        if vector.ndim != 1 or vector.size == 0 or not np.all(np.isfinite(vector)):
            raise MalformedProviderResponse(f"Unexpected embedding shape {vector.shape}")
        return vector.tolist()

    async def ping(self) -> bool:
        await asyncio.to_thread(self.warmup)
        return True
