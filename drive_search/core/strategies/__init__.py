"""Chunking and similarity strategies."""
from .chunking import FixedWindowChunker, normalize_text
from .similarity import cosine_scores

__all__ = [
    "FixedWindowChunker",
    "normalize_text",
    "cosine_scores",
]
