"""Direction sampling and neighborhood helpers."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Iterable, List

import torch
from torch import Tensor

from .vector import Vector3


def fibonacci_sphere(num: int, *, dtype: torch.dtype = torch.float64) -> Tensor:
    """Return ``num`` unit directions spread over the sphere.

    Uses an arc-cosine polar spacing in ``[-1, 1]`` and an azimuth scaled by
    ``sqrt(num * pi)``, so directions do not cluster at the poles.

    Example:
        >>> dirs = fibonacci_sphere(1000)
        >>> dirs.shape
        torch.Size([1000, 3])
    """
    if num < 0:
        raise ValueError("num must be non-negative")
    if num == 0:
        return torch.zeros((0, 3), dtype=dtype)
    idx = torch.arange(num, dtype=dtype)
    phi = torch.acos(-1.0 + 2.0 * idx / num)
    theta = math.sqrt(num * math.pi) * phi
    sin_phi = torch.sin(phi)
    dirs = torch.stack(
        [sin_phi * torch.sin(theta), torch.cos(phi), sin_phi * torch.cos(theta)], dim=-1
    )
    norms = torch.linalg.norm(dirs, dim=-1, keepdim=True).clamp_min(1e-12)
    return dirs / norms


@lru_cache(maxsize=16)
def fibonacci_directions(num: int) -> tuple[Vector3, ...]:
    """Cached ``fibonacci_sphere`` output as ``Vector3`` values."""
    return tuple(Vector3(*row) for row in fibonacci_sphere(num).tolist())


def neighbor_offsets(step: float) -> List[Vector3]:
    """Return the 26 grid-neighbor offsets of ``{-step, 0, step}^3``."""
    values = (-step, 0.0, step)
    offsets: List[Vector3] = []
    for dx in values:
        for dy in values:
            for dz in values:
                if dx == 0 and dy == 0 and dz == 0:
                    continue
                offsets.append(Vector3(dx, dy, dz))
    return offsets


def dedupe_positions(positions: Iterable[Vector3], tol: float) -> List[Vector3]:
    """Drop positions within ``tol`` (per axis) of an earlier one, keeping order."""
    unique: List[Vector3] = []
    for pos in positions:
        if not any(pos.is_close(seen, tol) for seen in unique):
            unique.append(pos)
    return unique
