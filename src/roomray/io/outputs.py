"""JSON export of evaluation results and occupancy grids."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, TYPE_CHECKING

from ..geometry.vector import Vector3
from ..models.results import PropagationResult

if TYPE_CHECKING:
    from ..models.scene import Scene
    from ..sim.occupancy import OccupancyGrid


def build_result_payload(
    result: PropagationResult,
    scene: Optional["Scene"] = None,
    *,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build a JSON-ready dictionary for a propagation result.

    Examples:
        ```python
        payload = build_result_payload(result, scene)
        payload["score"]
        ```
    """
    payload: Dict[str, Any] = {
        "score": result.score,
        "num_rays": result.num_rays,
        "direct_hits": result.direct_hits,
        "indirect_hits": result.indirect_hits,
        "bounce_histogram": {str(k): v for k, v in sorted(result.bounce_histogram.items())},
        "segments": [seg.to_dict() for seg in result.segments],
    }
    if scene is not None:
        payload["scene"] = {
            "room": {
                "min": scene.room.min_corner.tolist(),
                "max": scene.room.max_corner.tolist(),
                "wall_thickness": scene.room.wall_thickness,
            },
            "objects": [
                {
                    "name": obj.name,
                    "kind": obj.kind.value,
                    "center": obj.center.tolist(),
                    "half_extents": obj.half_extents.tolist(),
                    "static": obj.static,
                    "collidable": obj.collidable,
                }
                for obj in scene.objects
            ],
            "source": scene.source_name,
            "listener": scene.listener_name,
        }
    if extra is not None:
        payload["extra"] = _to_serializable(extra)
    return payload


def save_result_json(
    path: Path,
    result: PropagationResult,
    scene: Optional["Scene"] = None,
    *,
    extra: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """Save a propagation result (score, counts, segments) as JSON."""
    payload = build_result_payload(result, scene, extra=extra)
    _dump(path, payload)
    if logger is not None:
        logger.info("saved: %s", path)
    return payload


def save_grid_json(
    path: Path,
    grid: "OccupancyGrid",
    *,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """Save the non-empty cells of an occupancy grid as JSON."""
    payload = {
        "shape": list(grid.shape),
        "cell_size": grid.cell_size,
        "room_min": grid.room_min.tolist(),
        "room_max": grid.room_max.tolist(),
        "cells": grid.occupied_cells(),
    }
    _dump(path, payload)
    if logger is not None:
        logger.info("saved: %s", path)
    return payload


def _dump(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def _to_serializable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Vector3):
        return value.tolist()
    if isinstance(value, Path):
        return str(value)
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return _to_serializable(value.to_dict())
    if isinstance(value, dict):
        return {k: _to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_serializable(v) for v in value]
    return value
