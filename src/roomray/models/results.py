"""Result containers for propagation and optimization outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, TYPE_CHECKING

from ..geometry.vector import Vector3

if TYPE_CHECKING:
    from ..config import SimulationConfig

BOUNCE_COLORS = (
    0xFFFF00,
    0xFFA500,
    0xFF00FF,
    0x00FFFF,
    0x00FA9A,
    0xDDA0DD,
    0xFA8072,
    0xADD8E6,
    0xF0E68C,
    0x90EE90,
    0xFFC0CB,
)
LISTENER_COLOR = 0x00FF00


def bounce_color(depth: int) -> int:
    """Color class for a segment at the given bounce depth."""
    return BOUNCE_COLORS[depth % len(BOUNCE_COLORS)]


def _ordinal(n: int) -> str:
    suffix = "th"
    if n % 100 not in (11, 12, 13):
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def ray_legend(max_bounces: int) -> List[Dict[str, Any]]:
    """Return ``{"color", "label"}`` entries describing segment colors.

    Example:
        >>> ray_legend(2)[0]["label"]
        'Reaches Listener'
    """
    legend: List[Dict[str, Any]] = [{"color": LISTENER_COLOR, "label": "Reaches Listener"}]
    shown = min(max_bounces, len(BOUNCE_COLORS) - 1)
    for depth in range(shown + 1):
        label = "Direct Path (Non-Listener)" if depth == 0 else f"{_ordinal(depth)} Bounce"
        legend.append({"color": BOUNCE_COLORS[depth], "label": label})
    if max_bounces > shown:
        legend.append({"color": BOUNCE_COLORS[-1], "label": "Further Bounces"})
    return legend


@dataclass(frozen=True)
class RaySegment:
    """One traced segment, produced for rendering only."""

    start: Vector3
    end: Vector3
    color: int
    opacity: float
    bounce: int
    hits_listener: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.tolist(),
            "end": self.end.tolist(),
            "color": self.color,
            "opacity": self.opacity,
            "bounce": self.bounce,
            "hits_listener": self.hits_listener,
        }


@dataclass(frozen=True)
class PropagationResult:
    """Score and visual segments of one evaluation.

    Example:
        >>> result = engine.evaluate(src, lst, 0.25, collidables)
        >>> result.score
    """

    score: int
    segments: List[RaySegment] = field(default_factory=list)
    num_rays: int = 0
    direct_hits: int = 0
    indirect_hits: int = 0
    bounce_histogram: Dict[int, int] = field(default_factory=dict)

    @property
    def listener_hits(self) -> int:
        return self.direct_hits + self.indirect_hits


@dataclass(frozen=True)
class BestSettings:
    """Snapshot of every parameter and position behind a best score.

    ``to_dict``/``from_dict`` are inverses so a stored record can be reapplied.
    """

    score: int
    iteration: int
    num_rays: int
    initial_opacity: float
    max_bounces: int
    attenuation_factor: float
    exploration_factor: float
    listener_only: bool
    source_pos: Vector3
    listener_pos: Vector3

    @classmethod
    def capture(
        cls,
        config: "SimulationConfig",
        *,
        score: int,
        iteration: int,
        source_pos: Vector3,
        listener_pos: Vector3,
    ) -> "BestSettings":
        return cls(
            score=score,
            iteration=iteration,
            num_rays=config.num_rays,
            initial_opacity=config.initial_opacity,
            max_bounces=config.max_bounces,
            attenuation_factor=config.attenuation_factor,
            exploration_factor=config.exploration_factor,
            listener_only=config.listener_only,
            source_pos=source_pos,
            listener_pos=listener_pos,
        )

    def apply_to(self, config: "SimulationConfig") -> "SimulationConfig":
        """Return ``config`` with this snapshot's simulation parameters."""
        return config.replace(
            num_rays=self.num_rays,
            initial_opacity=self.initial_opacity,
            max_bounces=self.max_bounces,
            attenuation_factor=self.attenuation_factor,
            exploration_factor=self.exploration_factor,
            listener_only=self.listener_only,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "iteration": self.iteration,
            "num_rays": self.num_rays,
            "initial_opacity": self.initial_opacity,
            "max_bounces": self.max_bounces,
            "attenuation_factor": self.attenuation_factor,
            "exploration_factor": self.exploration_factor,
            "listener_only": self.listener_only,
            "source_pos": self.source_pos.tolist(),
            "listener_pos": self.listener_pos.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BestSettings":
        return cls(
            score=int(data["score"]),
            iteration=int(data["iteration"]),
            num_rays=int(data["num_rays"]),
            initial_opacity=float(data["initial_opacity"]),
            max_bounces=int(data["max_bounces"]),
            attenuation_factor=float(data["attenuation_factor"]),
            exploration_factor=float(data["exploration_factor"]),
            listener_only=bool(data["listener_only"]),
            source_pos=Vector3.of(data["source_pos"]),
            listener_pos=Vector3.of(data["listener_pos"]),
        )
