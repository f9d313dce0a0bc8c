"""Closest-hit ray casting against scene primitives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import EPSILON
from ..geometry.primitives import Primitive
from ..geometry.vector import Vector3

MAX_RAY_DISTANCE = 50.0


@dataclass(frozen=True)
class Ray:
    """Ray with a unit direction and the bounce budget left for it."""

    origin: Vector3
    direction: Vector3
    bounces_remaining: int = 0

    def at(self, distance: float) -> Vector3:
        return self.origin + self.direction * distance


@dataclass(frozen=True)
class IntersectionResult:
    hit: bool = False
    point: Optional[Vector3] = None
    normal: Optional[Vector3] = None
    distance: float = float("inf")
    primitive: Optional[Primitive] = None


MISS = IntersectionResult()


def intersect(
    ray: Ray,
    primitives: Iterable[Primitive],
    ignore: Optional[Primitive] = None,
    max_distance: float = MAX_RAY_DISTANCE,
) -> IntersectionResult:
    """Return the closest hit of ``ray`` against ``primitives``.

    Only hits strictly beyond ``EPSILON`` count. When two primitives report
    the same distance the earlier one in iteration order wins. ``ignore`` is
    matched by identity and non-collidable primitives are skipped.

    Example:
        >>> ray = Ray(Vector3(0, 1, 0), Vector3(1, 0, 0))
        >>> result = intersect(ray, scene.objects)
        >>> result.hit, result.distance
    """
    closest = max_distance
    best: Optional[Primitive] = None
    for prim in primitives:
        if prim is ignore or not prim.collidable:
            continue
        t = prim.intersect(ray.origin, ray.direction, closest)
        if t is not None and EPSILON < t < closest:
            closest = t
            best = prim
    if best is None:
        return MISS
    point = ray.at(closest)
    return IntersectionResult(
        hit=True,
        point=point,
        normal=best.normal_at(point),
        distance=closest,
        primitive=best,
    )
