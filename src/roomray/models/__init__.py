"""Core data models for rooms, scenes, and results.

Example:
    >>> from roomray import Room, Scene
    >>> room = Room.shoebox(width=40.0, height=10.0, depth=40.0)
    >>> scene = Scene(room=room, objects=[source, listener])
"""

from .results import (
    BOUNCE_COLORS,
    LISTENER_COLOR,
    BestSettings,
    PropagationResult,
    RaySegment,
    bounce_color,
    ray_legend,
)
from .room import Room
from .scene import Scene

__all__ = [
    "BOUNCE_COLORS",
    "BestSettings",
    "LISTENER_COLOR",
    "PropagationResult",
    "RaySegment",
    "Room",
    "Scene",
    "bounce_color",
    "ray_legend",
]
