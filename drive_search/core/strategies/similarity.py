"""Cosine similarity over a flat vector matrix.

Zero-norm vectors score 0. Vectors of different length are compared over
their common prefix (the shorter length).
"""
import numpy as np


def cosine_scores(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of one query vector against every row of a matrix."""
    if matrix.size == 0:
        return np.zeros(matrix.shape[0], dtype=np.float64)
    dim = min(query.shape[0], matrix.shape[1])
    q = query[:dim]
    m = matrix[:, :dim]
    dots = m @ q
    denom = np.linalg.norm(m, axis=1) * np.linalg.norm(q)
    return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)
