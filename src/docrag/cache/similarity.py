"""Vector similarity used by the semantic cache."""

from __future__ import annotations

import math
from collections.abc import Sequence

from docrag.errors import DimensionMismatchError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return dot(a, b) / (|a| * |b|), in [-1, 1].

    A zero-magnitude vector yields 0.0.

    Raises:
        DimensionMismatchError: If *a* and *b* differ in length. Never
            truncated or padded; a mismatch means two embedding models or
            configurations are being mixed.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Vectors must have the same length (got {len(a)} and {len(b)})"
        )

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
