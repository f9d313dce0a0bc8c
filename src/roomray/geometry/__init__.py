"""Geometry helpers: vectors, primitives, and direction sampling."""

from .primitives import Primitive, ShapeKind
from .sampling import dedupe_positions, fibonacci_directions, fibonacci_sphere, neighbor_offsets
from .vector import Vector3

__all__ = [
    "Primitive",
    "ShapeKind",
    "Vector3",
    "dedupe_positions",
    "fibonacci_directions",
    "fibonacci_sphere",
    "neighbor_offsets",
]
