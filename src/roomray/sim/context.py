"""Simulation context owning the scene, engine, grid, and their lock."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

from ..config import SimulationConfig
from ..geometry.primitives import Primitive
from ..geometry.vector import Vector3
from ..models.results import BestSettings, PropagationResult
from ..models.scene import Scene
from .occupancy import OccupancyGrid, Role
from .propagation import PropagationEngine

logger = logging.getLogger(__name__)


class MissingObjectError(LookupError):
    """Raised when the scene lacks the source or the listener."""


class SimulationContext:
    """Everything one simulation needs, passed explicitly to its consumers.

    The context builds the occupancy grid from the scene's static obstacles
    and places the source and listener in it. Position changes and grid
    updates happen under ``lock`` so a manual move and an optimizer commit
    never interleave.

    Examples:
        ```python
        ctx = SimulationContext(living_room_scene(), SimulationConfig(num_rays=500))
        print(ctx.evaluate().score)
        ctx.move(Role.LISTENER, Vector3(2.0, 1.5, -4.0))
        ```
    """

    def __init__(self, scene: Scene, config: Optional[SimulationConfig] = None) -> None:
        scene.validate()
        self.scene = scene
        self.config = config if config is not None else SimulationConfig()
        self.config.validate()
        self.engine = PropagationEngine(self.config)
        self.lock = threading.RLock()
        self.grid = self._build_grid()

    def _build_grid(self) -> OccupancyGrid:
        room = self.scene.room
        grid = OccupancyGrid(room.min_corner, room.max_corner, self.config.cell_size)
        grid.build(self.scene.static_obstacles())
        for role in Role:
            obj = self.movable(role)
            if obj is not None:
                grid.place(obj.name, obj.center, obj.radius, role)
        return grid

    def movable(self, role: Role) -> Optional[Primitive]:
        if role is Role.SOURCE:
            return self.scene.source
        return self.scene.listener

    def require(self) -> Tuple[Primitive, Primitive]:
        """Return ``(source, listener)`` or raise ``MissingObjectError``."""
        source, listener = self.scene.source, self.scene.listener
        if source is None or listener is None:
            raise MissingObjectError("scene has no source or no listener")
        return source, listener

    def collidables(self) -> List[Primitive]:
        """Primitives rays can hit; the source and listener are handled by the engine."""
        movers = (self.scene.source, self.scene.listener)
        return [obj for obj in self.scene.objects if obj.collidable and obj not in movers]

    def evaluate(self, *, collect_segments: bool = True) -> PropagationResult:
        """Full-resolution evaluation at the current positions."""
        with self.lock:
            source, listener = self.require()
            source_pos, listener_pos = source.center, listener.center
        return self.engine.evaluate(
            source_pos,
            listener_pos,
            listener.radius,
            self.collidables(),
            source_radius=source.radius,
            collect_segments=collect_segments,
        )

    def estimate(self, source_pos: Vector3, listener_pos: Vector3) -> int:
        """Reduced-resolution score for hypothetical positions."""
        source, listener = self.require()
        return self.engine.estimate(
            source_pos,
            listener_pos,
            listener.radius,
            self.collidables(),
            source_radius=source.radius,
        )

    def is_valid(self, role: Role, pos: Vector3) -> bool:
        """Check a candidate position for ``role`` against the grid."""
        moving = self.movable(role)
        other = self.movable(role.other)
        if moving is None:
            return False
        return self.grid.is_valid(
            pos,
            moving.radius,
            role,
            other.center if other is not None else None,
            other.radius if other is not None else 0.0,
        )

    def move(self, role: Role, pos: Vector3) -> None:
        """Reposition a movable object and its grid footprint atomically."""
        with self.lock:
            obj = self.movable(role)
            if obj is None:
                raise MissingObjectError(f"scene has no {role.value}")
            old = obj.center
            obj.move_to(pos)
            self.grid.update(obj.name, old, pos, obj.radius, role)
        logger.debug("moved %s from %s to %s", role.value, old, pos)

    def snapshot(self, score: int, iteration: int) -> BestSettings:
        with self.lock:
            source, listener = self.require()
            return BestSettings.capture(
                self.config,
                score=score,
                iteration=iteration,
                source_pos=source.center,
                listener_pos=listener.center,
            )

    def apply_settings(self, settings: BestSettings) -> None:
        """Reapply a stored snapshot: parameters first, then both positions."""
        with self.lock:
            self._set_config(settings.apply_to(self.config))
            self.move(Role.SOURCE, settings.source_pos)
            self.move(Role.LISTENER, settings.listener_pos)
        logger.info("applied settings with score %d", settings.score)

    def update_config(self, **changes) -> SimulationConfig:
        with self.lock:
            self._set_config(self.config.replace(**changes))
            return self.config

    def _set_config(self, config: SimulationConfig) -> None:
        rebuild = config.cell_size != self.config.cell_size
        self.config = config
        self.engine = PropagationEngine(config)
        if rebuild:
            self.grid = self._build_grid()
