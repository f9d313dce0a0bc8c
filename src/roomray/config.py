from __future__ import annotations

"""Simulation configuration for roomray."""

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Mapping, Optional

EPSILON = 1e-5
BASE_DIRECT_HIT_SCORE = 10
FIBONACCI_CAP_INDEX = 20


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration values for ray propagation and placement optimization.

    Example:
        >>> cfg = SimulationConfig(num_rays=500, max_bounces=4)
        >>> cfg.validate()
    """

    num_rays: int = 1000
    max_bounces: int = 3
    initial_opacity: float = 0.6
    attenuation_factor: float = 0.85
    exploration_factor: float = 1.0
    listener_only: bool = True
    random_jump_probability: float = 0.1
    max_iterations: int = 50000
    step_size: float = 0.5
    cell_size: float = 0.5
    max_ray_distance: float = 50.0
    min_opacity: float = 0.01
    surface_offset: float = 0.01
    eval_ray_divisor: int = 50
    eval_ray_min: int = 10
    eval_ray_max: int = 100
    seed: Optional[int] = None

    def validate(self) -> None:
        """Validate configuration values."""
        if self.num_rays < 0:
            raise ValueError("num_rays must be non-negative")
        if self.max_bounces < 0:
            raise ValueError("max_bounces must be non-negative")
        if not 0.0 <= self.initial_opacity <= 1.0:
            raise ValueError("initial_opacity must be in [0, 1]")
        if not 0.0 <= self.attenuation_factor <= 1.0:
            raise ValueError("attenuation_factor must be in [0, 1]")
        if self.exploration_factor < 0:
            raise ValueError("exploration_factor must be non-negative")
        if not 0.0 <= self.random_jump_probability <= 1.0:
            raise ValueError("random_jump_probability must be in [0, 1]")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")
        if self.step_size <= 0:
            raise ValueError("step_size must be positive")
        if self.cell_size <= 0:
            raise ValueError("cell_size must be positive")
        if self.max_ray_distance <= 0:
            raise ValueError("max_ray_distance must be positive")
        if self.min_opacity < 0:
            raise ValueError("min_opacity must be non-negative")
        if self.surface_offset <= 0:
            raise ValueError("surface_offset must be positive")
        if self.eval_ray_divisor <= 0:
            raise ValueError("eval_ray_divisor must be positive")
        if self.eval_ray_min <= 0 or self.eval_ray_max < self.eval_ray_min:
            raise ValueError("eval_ray_min must be positive and not exceed eval_ray_max")
        if self.seed is not None and self.seed < 0:
            raise ValueError("seed must be non-negative")

    def replace(self, **kwargs) -> "SimulationConfig":
        """Return a new config with updated fields."""
        new_cfg = replace(self, **kwargs)
        new_cfg.validate()
        return new_cfg

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimulationConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in data.items() if k in known})
        cfg.validate()
        return cfg


def default_config() -> SimulationConfig:
    """Return the default simulation configuration.

    Example:
        >>> cfg = default_config()
    """
    cfg = SimulationConfig()
    cfg.validate()
    return cfg
