"""Element-wise arithmetic and similarity measures on vectors."""

from __future__ import annotations

import math
from typing import Sequence

_MISMATCH = "vector dimensions do not match"


def _check_same_length(a: Sequence[float], b: Sequence[float]) -> None:
    if len(a) != len(b):
        raise ValueError(_MISMATCH)


def vector_add(a: Sequence[float], b: Sequence[float]) -> list[float]:
    """Add two vectors element-wise."""
    _check_same_length(a, b)
    return [x + y for x, y in zip(a, b)]


def vector_subtract(a: Sequence[float], b: Sequence[float]) -> list[float]:
    """Subtract ``b`` from ``a`` element-wise."""
    _check_same_length(a, b)
    return [x - y for x, y in zip(a, b)]


def vector_magnitude(v: Sequence[float]) -> float:
    """Return the Euclidean length of a vector."""
    return math.sqrt(sum(x * x for x in v))


def normalize_vector(v: Sequence[float]) -> list[float]:
    """Return the vector scaled to unit length; a zero vector is returned unchanged."""
    norm = vector_magnitude(v)
    if norm > 0:
        return [x / norm for x in v]
    return list(v)


def dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the dot product of two vectors."""
    _check_same_length(a, b)
    return sum(x * y for x, y in zip(a, b))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity in [-1, 1]; 0 if either vector is zero."""
    _check_same_length(a, b)
    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return max(-1.0, min(1.0, similarity))


def scalar_multiply(v: Sequence[float], scalar: float) -> list[float]:
    """Multiply every component of a vector by ``scalar``."""
    return [x * scalar for x in v]