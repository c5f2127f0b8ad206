"""Vector helpers for embedding comparison."""

import random
from typing import List, Optional, Sequence

import numpy as np


class VectorLengthMismatchError(ValueError):
    """Two vectors of different dimension were compared."""


def zero_vector(dimension: int) -> List[float]:
    return [0.0] * dimension


def substitute_vector(dimension: int, rng: Optional[random.Random] = None) -> List[float]:
    """Pseudo-random vector with components in [-1, 1), used when the provider is unreachable."""
    rng = rng or random.Random()
    return [rng.random() * 2.0 - 1.0 for _ in range(dimension)]


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors expressed as a percentage.

    Returns a value in [-100, 100]; 0.0 when either vector has zero norm.
    Raises VectorLengthMismatchError when the lengths differ.
    """
    if len(vec_a) != len(vec_b):
        raise VectorLengthMismatchError(
            f"Vectors must have the same length ({len(vec_a)} != {len(vec_b)})"
        )

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b)) * 100.0
