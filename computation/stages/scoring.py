"""
Scoring functions — score every item vector against one user vector.

A scorer takes the user vector (k,) and the item matrix (n, k) and returns
(n,) scores; higher is better. The recommend step takes any such callable.
"""

from typing import Callable

import numpy as np

Scorer = Callable[[np.ndarray, np.ndarray], np.ndarray]


def dot_scorer(user_vector: np.ndarray, item_vectors: np.ndarray) -> np.ndarray:
    """Dot product: the estimated preference of the user for each item."""
    return item_vectors @ user_vector


def cosine_scorer(user_vector: np.ndarray, item_vectors: np.ndarray) -> np.ndarray:
    """Cosine similarity; zero-norm vectors score 0."""
    dots = item_vectors @ user_vector
    norms = np.linalg.norm(item_vectors, axis=1) * np.linalg.norm(user_vector)
    out = np.zeros_like(dots)
    np.divide(dots, norms, out=out, where=norms > 0)
    return out
