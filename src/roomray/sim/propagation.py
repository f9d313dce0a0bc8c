"""Multi-bounce ray propagation and listener scoring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..config import FIBONACCI_CAP_INDEX, SimulationConfig
from ..geometry.primitives import Primitive
from ..geometry.sampling import fibonacci_directions
from ..geometry.vector import Vector3
from ..models.results import LISTENER_COLOR, PropagationResult, RaySegment, bounce_color
from .raycast import Ray, intersect
from .scoring import fibonacci_table, reduced_ray_count, score_hit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathHit:
    """Outcome of one traced path: whether and after how many bounces it arrived."""

    hit_listener: bool = False
    bounces: int = 0


_NO_HIT = PathHit()


@dataclass
class _TraceState:
    listener_pos: Vector3
    listener_radius: float
    primary: Sequence[Primitive]
    secondary: Sequence[Primitive]
    max_bounces: int
    segments: Optional[List[RaySegment]]


class PropagationEngine:
    """Cast Fibonacci-distributed rays from a source and score listener arrivals.

    ``collidables`` passed to the engine must not contain the source or the
    listener themselves: the listener is tested analytically, and the source
    is modeled as a transient sphere of ``source_radius`` that only occludes
    reflected rays. Evaluation mutates nothing, so one engine can score many
    candidate positions.

    Examples:
        ```python
        engine = PropagationEngine(SimulationConfig(num_rays=500))
        result = engine.evaluate(
            Vector3(0, 1.5, 5), Vector3(0, 1.5, -5), 0.25, scene.static_obstacles()
        )
        print(result.score, len(result.segments))
        ```
    """

    def __init__(self, config: SimulationConfig) -> None:
        config.validate()
        self.config = config
        self.fib = fibonacci_table(FIBONACCI_CAP_INDEX)

    def evaluate(
        self,
        source_pos: Vector3,
        listener_pos: Vector3,
        listener_radius: float,
        collidables: Sequence[Primitive],
        max_bounces: Optional[int] = None,
        *,
        num_rays: Optional[int] = None,
        source_radius: float = 0.0,
        collect_segments: bool = True,
    ) -> PropagationResult:
        """Trace every ray and return the total score with visual segments."""
        cfg = self.config
        n = cfg.num_rays if num_rays is None else num_rays
        bounces_limit = cfg.max_bounces if max_bounces is None else max_bounces
        if n < 0:
            raise ValueError("num_rays must be non-negative")
        if listener_radius <= 0:
            raise ValueError("listener_radius must be positive")

        primary = list(collidables)
        secondary = primary
        if source_radius > 0:
            occluder = Primitive.sphere(
                "__source__", source_pos, source_radius, static=False
            )
            secondary = primary + [occluder]

        state = _TraceState(
            listener_pos=listener_pos,
            listener_radius=listener_radius,
            primary=primary,
            secondary=secondary,
            max_bounces=bounces_limit,
            segments=[] if collect_segments else None,
        )

        score = 0
        direct = 0
        indirect = 0
        histogram: Dict[int, int] = {}
        for direction in fibonacci_directions(n):
            path = self._trace(source_pos, direction, 0, None, state)
            if not path.hit_listener:
                continue
            score += score_hit(path.bounces, self.fib)
            histogram[path.bounces] = histogram.get(path.bounces, 0) + 1
            if path.bounces == 0:
                direct += 1
            else:
                indirect += 1

        return PropagationResult(
            score=score,
            segments=state.segments or [],
            num_rays=n,
            direct_hits=direct,
            indirect_hits=indirect,
            bounce_histogram=histogram,
        )

    def estimate(
        self,
        source_pos: Vector3,
        listener_pos: Vector3,
        listener_radius: float,
        collidables: Sequence[Primitive],
        *,
        source_radius: float = 0.0,
    ) -> int:
        """Score with the reduced ray count and no segments."""
        cfg = self.config
        n = reduced_ray_count(
            cfg.num_rays, cfg.eval_ray_divisor, cfg.eval_ray_min, cfg.eval_ray_max
        )
        result = self.evaluate(
            source_pos,
            listener_pos,
            listener_radius,
            collidables,
            num_rays=n,
            source_radius=source_radius,
            collect_segments=False,
        )
        return result.score

    def _trace(
        self,
        origin: Vector3,
        direction: Vector3,
        depth: int,
        surface: Optional[Primitive],
        state: _TraceState,
    ) -> PathHit:
        cfg = self.config
        if depth > state.max_bounces:
            return _NO_HIT

        candidates = state.primary if depth == 0 else state.secondary
        ray = Ray(origin, direction, state.max_bounces - depth)
        hit = intersect(ray, candidates, ignore=surface, max_distance=cfg.max_ray_distance)
        length = hit.distance if hit.hit else cfg.max_ray_distance
        end = hit.point if hit.hit else ray.at(length)

        to_listener = state.listener_pos - origin
        t = min(max(to_listener.dot(direction), 0.0), length)
        closest = ray.at(t)
        reaches = closest.distance_to(state.listener_pos) < state.listener_radius and (
            not hit.hit or hit.distance > t
        )

        opacity = cfg.initial_opacity * cfg.attenuation_factor**depth
        segments = state.segments
        slot = len(segments) if segments is not None else 0

        if reaches:
            path = PathHit(True, depth)
            if segments is not None:
                segments.insert(
                    slot,
                    RaySegment(origin, end, LISTENER_COLOR, cfg.initial_opacity, depth, True),
                )
            return path

        path = _NO_HIT
        if hit.hit and depth < state.max_bounces and opacity >= cfg.min_opacity:
            reflected = direction.reflect(hit.normal).normalized()
            next_origin = hit.point + reflected * cfg.surface_offset
            path = self._trace(next_origin, reflected, depth + 1, hit.primitive, state)

        if segments is not None and opacity >= cfg.min_opacity:
            if not cfg.listener_only or path.hit_listener:
                segments.insert(slot, RaySegment(origin, end, bounce_color(depth), opacity, depth))
        return path
