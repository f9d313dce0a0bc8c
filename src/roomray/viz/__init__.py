"""Visualization helpers for scenes and traced rays."""

from .io import render_scene_plots, save_scene_plots
from .scene import plot_scene

__all__ = [
    "plot_scene",
    "render_scene_plots",
    "save_scene_plots",
]
