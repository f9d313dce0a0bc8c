"""Three-component vector value type."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator


@dataclass(frozen=True)
class Vector3:
    """Immutable 3D vector.

    The y axis points up; room floors lie in the x/z plane.

    Examples:
        ```python
        v = Vector3(1.0, 0.0, 0.0)
        r = v.reflect(Vector3(-1.0, 0.0, 0.0))
        ```
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __getitem__(self, axis: int) -> float:
        return (self.x, self.y, self.z)[axis]

    def scale(self, scalar: float) -> Vector3:
        return self * scalar

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def normalized(self) -> Vector3:
        """Return a unit vector; the zero vector maps to itself."""
        length = self.length()
        if length == 0:
            return Vector3()
        return Vector3(self.x / length, self.y / length, self.z / length)

    def reflect(self, normal: Vector3) -> Vector3:
        """Reflect about a unit normal: ``v - 2 (v . n) n``."""
        return self - normal * (2.0 * self.dot(normal))

    def distance_to(self, other: Vector3) -> float:
        return (self - other).length()

    def distance_squared_to(self, other: Vector3) -> float:
        return (self - other).length_squared()

    def is_close(self, other: Vector3, tol: float) -> bool:
        """Return True if every component differs by less than ``tol``."""
        return (
            abs(self.x - other.x) < tol
            and abs(self.y - other.y) < tol
            and abs(self.z - other.z) < tol
        )

    def tolist(self) -> list[float]:
        return [self.x, self.y, self.z]

    @classmethod
    def of(cls, values: Iterable[float]) -> Vector3:
        """Build a vector from any three-element iterable."""
        items = [float(v) for v in values]
        if len(items) != 3:
            raise ValueError("Vector3 requires exactly three components")
        return cls(*items)

    @classmethod
    def from_spherical(cls, radius: float, phi: float, theta: float) -> Vector3:
        """Build a vector from spherical coordinates.

        ``phi`` is the polar angle measured from +y and ``theta`` the azimuth
        around the y axis.
        """
        sin_phi_radius = math.sin(phi) * radius
        return cls(
            sin_phi_radius * math.sin(theta),
            math.cos(phi) * radius,
            sin_phi_radius * math.cos(theta),
        )
