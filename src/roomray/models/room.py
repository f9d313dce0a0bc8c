"""Room bounds model."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from ..geometry.vector import Vector3


@dataclass(frozen=True)
class Room:
    """Axis-aligned interior bounds of a room.

    Examples:
        ```python
        room = Room.shoebox(width=40.0, height=10.0, depth=40.0)
        ```
    """

    min_corner: Vector3
    max_corner: Vector3
    wall_thickness: float = 0.2

    def __post_init__(self) -> None:
        """Validate room extents."""
        corners = list(self.min_corner) + list(self.max_corner)
        if not all(math.isfinite(v) for v in corners):
            raise ValueError("room bounds must contain finite values")
        if any(v <= 0 for v in self.size):
            raise ValueError("room size must be strictly positive")
        if self.wall_thickness < 0:
            raise ValueError("wall_thickness must be non-negative")

    @property
    def size(self) -> Vector3:
        return self.max_corner - self.min_corner

    @property
    def center(self) -> Vector3:
        return (self.min_corner + self.max_corner) * 0.5

    def replace(self, **kwargs) -> "Room":
        """Return a new Room with updated fields."""
        return replace(self, **kwargs)

    def contains(self, point: Vector3, margin: float = 0.0) -> bool:
        return all(
            lo + margin <= p <= hi - margin
            for p, lo, hi in zip(point, self.min_corner, self.max_corner)
        )

    def clamp(self, point: Vector3, margin: float = 0.0) -> Vector3:
        """Clamp a point to remain inside the room with a margin.

        When the margin is larger than half the room along an axis the point
        is pinned to the room center on that axis.
        """
        coords = []
        for p, lo, hi in zip(point, self.min_corner, self.max_corner):
            low, high = lo + margin, hi - margin
            if low > high:
                coords.append((lo + hi) / 2.0)
            else:
                coords.append(min(max(p, low), high))
        return Vector3(*coords)

    @staticmethod
    def shoebox(
        *,
        width: float,
        height: float,
        depth: float,
        wall_thickness: float = 0.2,
    ) -> "Room":
        """Create a room centered on the origin in x/z with the floor at y=0."""
        return Room(
            min_corner=Vector3(-width / 2.0, 0.0, -depth / 2.0),
            max_corner=Vector3(width / 2.0, height, depth / 2.0),
            wall_thickness=wall_thickness,
        )
