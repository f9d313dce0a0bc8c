"""I/O helpers for visualization."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from ..models.results import RaySegment
from ..models.scene import Scene
from .scene import plot_scene

_STATIC_FIGSIZE_INCHES = (8.0, 6.0)
_STATIC_SAVE_DPI = 150


def render_scene_plots(
    *,
    out_dir: Path,
    scene: Scene,
    segments: Optional[Sequence[RaySegment]] = None,
    prefix: str = "scene",
    views: Sequence[str] = ("top", "3d"),
    title: Optional[str] = None,
    show: bool = False,
) -> list[Path]:
    """Plot the scene in each view and save PNG images to ``out_dir``."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths: list[Path] = []
    for view in views:
        ax = plot_scene(scene, segments, view=view, title=title, show=False)
        path = out_dir / f"{prefix}_{view}.png"
        _save_axes(ax, path, show=show)
        paths.append(path)
    return paths


def save_scene_plots(
    *,
    out_dir: Path,
    scene: Scene,
    segments: Optional[Sequence[RaySegment]] = None,
    prefix: str = "scene",
    title: Optional[str] = None,
    show: bool = False,
    logger: logging.Logger,
) -> list[Path]:
    """Plot and save scene images; failures are logged and skipped."""
    try:
        paths = render_scene_plots(
            out_dir=out_dir,
            scene=scene,
            segments=segments,
            prefix=prefix,
            title=title,
            show=show,
        )
    except Exception as exc:  # pragma: no cover - optional dependency
        logger.warning("Plot skipped: %s", exc)
        return []
    for path in paths:
        logger.info("saved: %s", path)
    return paths


def _save_axes(ax: Any, path: Path, *, show: bool) -> None:
    """Save a matplotlib axis to disk."""
    import matplotlib.pyplot as plt

    fig = ax.figure
    fig.set_size_inches(*_STATIC_FIGSIZE_INCHES)
    fig.tight_layout()
    fig.savefig(path, dpi=_STATIC_SAVE_DPI)
    if show:
        plt.show()
    plt.close(fig)
