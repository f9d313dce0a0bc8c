"""roomray public API."""

from .config import (
    BASE_DIRECT_HIT_SCORE,
    EPSILON,
    FIBONACCI_CAP_INDEX,
    SimulationConfig,
    default_config,
)
from .geometry import Primitive, ShapeKind, Vector3, fibonacci_sphere
from .infra import LoggingConfig, ProgressLogger, get_logger, setup_logging
from .io import RecordBook, save_grid_json, save_result_json
from .models import BestSettings, PropagationResult, RaySegment, Room, Scene, ray_legend
from .scene_utils import empty_room_scene, living_room_scene, movable_pair, room_shell
from .sim import (
    CellState,
    IntersectionResult,
    OccupancyGrid,
    OptimizationOutcome,
    OptimizerStatus,
    PlacementOptimizer,
    PropagationEngine,
    Ray,
    Role,
    SimulationContext,
    StepReport,
    fibonacci_table,
    intersect,
    reduced_ray_count,
    score_hit,
)

__all__ = [
    "BASE_DIRECT_HIT_SCORE",
    "BestSettings",
    "CellState",
    "EPSILON",
    "FIBONACCI_CAP_INDEX",
    "IntersectionResult",
    "LoggingConfig",
    "OccupancyGrid",
    "OptimizationOutcome",
    "OptimizerStatus",
    "PlacementOptimizer",
    "ProgressLogger",
    "Primitive",
    "PropagationEngine",
    "PropagationResult",
    "Ray",
    "RaySegment",
    "RecordBook",
    "Role",
    "Room",
    "Scene",
    "ShapeKind",
    "SimulationConfig",
    "SimulationContext",
    "StepReport",
    "Vector3",
    "default_config",
    "empty_room_scene",
    "fibonacci_sphere",
    "fibonacci_table",
    "get_logger",
    "intersect",
    "living_room_scene",
    "movable_pair",
    "ray_legend",
    "reduced_ray_count",
    "room_shell",
    "save_grid_json",
    "save_result_json",
    "score_hit",
    "setup_logging",
]
