"""Sphere and axis-aligned box primitives with ray intersection tests."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import EPSILON
from .vector import Vector3

logger = logging.getLogger(__name__)

_BOX_FACES = (
    (0, -1.0, Vector3(-1.0, 0.0, 0.0)),
    (0, 1.0, Vector3(1.0, 0.0, 0.0)),
    (1, -1.0, Vector3(0.0, -1.0, 0.0)),
    (1, 1.0, Vector3(0.0, 1.0, 0.0)),
    (2, -1.0, Vector3(0.0, 0.0, -1.0)),
    (2, 1.0, Vector3(0.0, 0.0, 1.0)),
)


class ShapeKind(str, Enum):
    SPHERE = "sphere"
    BOX = "box"


@dataclass(eq=False)
class Primitive:
    """A sphere or axis-aligned box in the scene.

    Primitives compare by identity so that a caller can exclude one specific
    object from a ray query. ``half_extents`` holds the radius on every axis
    for spheres.

    Examples:
        ```python
        wall = Primitive.box("BackWall", center=Vector3(0, 5, -20), size=Vector3(40, 10, 0.2))
        lamp = Primitive.sphere("LampShade", center=Vector3(13, 1.8, 0), radius=0.3)
        ```
    """

    name: str
    kind: ShapeKind
    center: Vector3
    half_extents: Vector3
    static: bool = True
    collidable: bool = True

    def __post_init__(self) -> None:
        self.kind = ShapeKind(self.kind)
        if not all(math.isfinite(v) for v in self.center):
            raise ValueError(f"{self.name}: center must contain finite values")
        if not all(math.isfinite(v) and v > 0 for v in self.half_extents):
            raise ValueError(f"{self.name}: extents must be finite and strictly positive")

    @classmethod
    def sphere(
        cls,
        name: str,
        center: Vector3,
        radius: float,
        *,
        static: bool = True,
        collidable: bool = True,
    ) -> "Primitive":
        return cls(
            name=name,
            kind=ShapeKind.SPHERE,
            center=center,
            half_extents=Vector3(radius, radius, radius),
            static=static,
            collidable=collidable,
        )

    @classmethod
    def box(
        cls,
        name: str,
        center: Vector3,
        size: Vector3,
        *,
        static: bool = True,
        collidable: bool = True,
    ) -> "Primitive":
        """Create a box from its full edge lengths."""
        return cls(
            name=name,
            kind=ShapeKind.BOX,
            center=center,
            half_extents=size * 0.5,
            static=static,
            collidable=collidable,
        )

    @property
    def radius(self) -> float:
        """Bounding radius used for sphere tests and occupancy footprints."""
        if self.kind is ShapeKind.SPHERE:
            return self.half_extents.x
        return max(self.half_extents)

    def bounds(self) -> tuple[Vector3, Vector3]:
        return self.center - self.half_extents, self.center + self.half_extents

    def move_to(self, position: Vector3) -> None:
        if self.static:
            raise ValueError(f"{self.name} is static and cannot be moved")
        self.center = position

    def intersect(
        self, origin: Vector3, direction: Vector3, max_distance: float
    ) -> Optional[float]:
        """Return the parametric hit distance along the ray, or None."""
        if self.kind is ShapeKind.SPHERE:
            return _intersect_sphere(self.center, self.half_extents.x, origin, direction)
        return _intersect_box(
            self.center - self.half_extents,
            self.center + self.half_extents,
            origin,
            direction,
            max_distance,
        )

    def normal_at(self, point: Vector3) -> Vector3:
        """Return the outward surface normal at a hit point."""
        if self.kind is ShapeKind.SPHERE:
            return (point - self.center).normalized()
        lo, hi = self.bounds()
        for axis, side, normal in _BOX_FACES:
            face = lo[axis] if side < 0 else hi[axis]
            if abs(point[axis] - face) < EPSILON:
                return normal
        logger.debug("no face matched on %s at %s; using center direction", self.name, point)
        return (point - self.center).normalized()


def _intersect_sphere(
    center: Vector3, radius: float, origin: Vector3, direction: Vector3
) -> Optional[float]:
    oc = origin - center
    a = direction.dot(direction)
    if a == 0:
        return None
    b = 2.0 * oc.dot(direction)
    c = oc.dot(oc) - radius * radius
    discriminant = b * b - 4.0 * a * c
    if discriminant < 0:
        return None
    root = math.sqrt(discriminant)
    near = (-b - root) / (2.0 * a)
    if near > EPSILON:
        return near
    # Origin inside the sphere: the exit point counts as the hit.
    far = (-b + root) / (2.0 * a)
    if far > EPSILON:
        return far
    return None


def _intersect_box(
    lo: Vector3,
    hi: Vector3,
    origin: Vector3,
    direction: Vector3,
    max_distance: float,
) -> Optional[float]:
    t_min, t_max = 0.0, max_distance
    for axis in range(3):
        d = direction[axis]
        o = origin[axis]
        if abs(d) < EPSILON:
            if o < lo[axis] or o > hi[axis]:
                return None
            continue
        inv_d = 1.0 / d
        t0 = (lo[axis] - o) * inv_d
        t1 = (hi[axis] - o) * inv_d
        if inv_d < 0:
            t0, t1 = t1, t0
        if t0 > t_min:
            t_min = t0
        if t1 < t_max:
            t_max = t1
        if t_min > t_max:
            return None
    if t_min > EPSILON:
        return t_min
    return None
