"""Ray propagation, occupancy, and placement optimization.

Example:
    >>> from roomray.sim import PlacementOptimizer, SimulationContext
    >>> ctx = SimulationContext(scene, config)
    >>> outcome = PlacementOptimizer(ctx).run()
"""

from .context import MissingObjectError, SimulationContext
from .occupancy import CellState, OccupancyGrid, Role
from .optimizer import (
    OptimizationOutcome,
    OptimizerState,
    OptimizerStatus,
    PlacementOptimizer,
    StepReport,
)
from .propagation import PathHit, PropagationEngine
from .raycast import MAX_RAY_DISTANCE, IntersectionResult, Ray, intersect
from .scoring import fibonacci_table, reduced_ray_count, score_hit

__all__ = [
    "CellState",
    "IntersectionResult",
    "MAX_RAY_DISTANCE",
    "MissingObjectError",
    "OccupancyGrid",
    "OptimizationOutcome",
    "OptimizerState",
    "OptimizerStatus",
    "PathHit",
    "PlacementOptimizer",
    "PropagationEngine",
    "Ray",
    "Role",
    "SimulationContext",
    "StepReport",
    "fibonacci_table",
    "intersect",
    "reduced_ray_count",
    "score_hit",
]
