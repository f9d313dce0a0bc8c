"""Fibonacci-weighted arrival scoring."""

from __future__ import annotations

from functools import lru_cache
from typing import Tuple

from ..config import BASE_DIRECT_HIT_SCORE, FIBONACCI_CAP_INDEX

INT64_MAX = 2**63 - 1


@lru_cache(maxsize=8)
def fibonacci_table(cap: int = FIBONACCI_CAP_INDEX, limit: int = INT64_MAX) -> Tuple[int, ...]:
    """Return ``fib[0..cap]`` with ``fib[0] = 0`` and ``fib[1] = 1``.

    An entry that would exceed ``limit`` repeats the previous value, so the
    table stays monotonically non-decreasing.

    Example:
        >>> fibonacci_table(6)
        (0, 1, 1, 2, 3, 5, 8)
    """
    if cap < 0:
        raise ValueError("cap must be non-negative")
    table = [0, 1][: cap + 1]
    for i in range(2, cap + 1):
        value = table[i - 1] + table[i - 2]
        table.append(table[i - 1] if value > limit else value)
    return tuple(table)


def score_hit(bounces: int, table: Tuple[int, ...] | None = None) -> int:
    """Score one listener arrival after ``bounces`` reflections."""
    if bounces < 0:
        raise ValueError("bounces must be non-negative")
    if bounces == 0:
        return BASE_DIRECT_HIT_SCORE
    if table is None:
        table = fibonacci_table()
    return table[min(bounces, len(table) - 1)]


def reduced_ray_count(
    num_rays: int, divisor: int = 50, minimum: int = 10, maximum: int = 100
) -> int:
    """Ray count used for cheap candidate scoring.

    Example:
        >>> reduced_ray_count(1000)
        20
    """
    return max(minimum, min(maximum, num_rays // divisor))
