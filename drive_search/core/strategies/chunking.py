import logging
import re

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


class FixedWindowChunker:
    """Split text into fixed-size character windows with overlap."""

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        max_chars: int | None = None,
    ):
        """Initialize chunker.

        Args:
            chunk_size: Window width in characters.
            chunk_overlap: Characters repeated between consecutive windows.
            max_chars: Per-document ceiling applied after normalization.

        Raises:
            ConfigurationError: Overlap not smaller than chunk size.
        """
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ConfigurationError(
                f"chunk_overlap must be in [0, {chunk_size}), got {chunk_overlap}"
            )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._max_chars = max_chars

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def chunk(self, text: str) -> list[str]:
        """Split text into overlapping windows.

        Args:
            text: Raw document text.

        Returns:
            Windows in order; empty for empty or whitespace-only text.
        """
        text = normalize_text(text)
        if self._max_chars is not None and len(text) > self._max_chars:
            logger.debug(f"Clipping document text {len(text)} -> {self._max_chars} chars")
            text = text[: self._max_chars]

        chunks: list[str] = []
        start = 0
        while start < len(text):
            end = min(start + self._chunk_size, len(text))
            piece = text[start:end].strip()
            if piece:
                chunks.append(piece)
            if end >= len(text):
                break
            start = max(end - self._chunk_overlap, 0)

        return chunks
