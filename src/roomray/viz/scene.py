from __future__ import annotations

"""Matplotlib-based plotting helpers for room scenes and traced rays."""

from typing import Any, Iterable, Optional, Sequence

from ..geometry.primitives import Primitive, ShapeKind
from ..geometry.vector import Vector3
from ..models.results import RaySegment, ray_legend
from ..models.room import Room
from ..models.scene import Scene

_VIEWS = ("3d", "top")
_ROOM_EDGES = (
    (0, 1), (1, 2), (2, 3), (3, 0),
    (4, 5), (5, 6), (6, 7), (7, 4),
    (0, 4), (1, 5), (2, 6), (3, 7),
)


def plot_scene(
    scene: Scene,
    segments: Optional[Sequence[RaySegment]] = None,
    *,
    view: str = "3d",
    ax: Any | None = None,
    title: Optional[str] = None,
    max_bounces: Optional[int] = None,
    show: bool = False,
):
    """Plot the room, its primitives, the source/listener and ray segments.

    ``view="3d"`` draws a perspective plot with the vertical axis up;
    ``view="top"`` projects onto the floor plane (x/z).

    Example:
        >>> result = ctx.evaluate()
        >>> ax = plot_scene(ctx.scene, result.segments, view="top")
    """
    if view not in _VIEWS:
        raise ValueError(f"view must be one of {_VIEWS}")
    plt, ax = _setup_axes(ax, view)

    _draw_room(ax, scene.room, view)
    movers = (scene.source, scene.listener)
    for obj in scene.objects:
        if obj in movers:
            continue
        _draw_primitive(ax, obj, view, color="0.55")
    if scene.source is not None:
        _draw_primitive(ax, scene.source, view, color="red", label="source")
    if scene.listener is not None:
        _draw_primitive(ax, scene.listener, view, color="blue", label="listener")
    if segments:
        _draw_segments(ax, segments, view)
        _add_ray_legend(ax, segments, max_bounces)

    if title:
        ax.set_title(title)
    ax.legend(loc="upper right", fontsize="small")
    if show:
        plt.show()
    return ax


def _setup_axes(ax: Any | None, view: str) -> tuple[Any, Any]:
    """Create 2D/3D axes for the requested view."""
    import matplotlib.pyplot as plt

    if ax is None:
        if view == "3d":
            fig = plt.figure()
            ax = fig.add_subplot(111, projection="3d")
        else:
            _, ax = plt.subplots()
    return plt, ax


def _project(point: Vector3, view: str) -> tuple[float, ...]:
    """Map scene coordinates (y up) to plot coordinates."""
    if view == "3d":
        return point.x, point.z, point.y
    return point.x, point.z


def _draw_room(ax: Any, room: Room, view: str) -> None:
    lo, hi = room.min_corner, room.max_corner
    if view == "top":
        import matplotlib.patches as patches

        rect = patches.Rectangle(
            (lo.x, lo.z), hi.x - lo.x, hi.z - lo.z, fill=False, edgecolor="black"
        )
        ax.add_patch(rect)
        ax.set_xlim(lo.x, hi.x)
        ax.set_ylim(lo.z, hi.z)
        ax.set_aspect("equal", adjustable="box")
        ax.set_xlabel("x")
        ax.set_ylabel("z")
        return
    corners = [
        Vector3(lo.x, lo.y, lo.z),
        Vector3(hi.x, lo.y, lo.z),
        Vector3(hi.x, lo.y, hi.z),
        Vector3(lo.x, lo.y, hi.z),
        Vector3(lo.x, hi.y, lo.z),
        Vector3(hi.x, hi.y, lo.z),
        Vector3(hi.x, hi.y, hi.z),
        Vector3(lo.x, hi.y, hi.z),
    ]
    _plot_edges(ax, corners, _ROOM_EDGES, view, color="black", linewidth=1.0)
    ax.set_xlim(lo.x, hi.x)
    ax.set_ylim(lo.z, hi.z)
    ax.set_zlim(lo.y, hi.y)
    ax.set_xlabel("x")
    ax.set_ylabel("z")
    ax.set_zlabel("y")


def _plot_edges(
    ax: Any,
    corners: Sequence[Vector3],
    edges: Iterable[tuple[int, int]],
    view: str,
    **kwargs: Any,
) -> None:
    for a, b in edges:
        pa, pb = _project(corners[a], view), _project(corners[b], view)
        ax.plot(*zip(pa, pb), **kwargs)


def _draw_primitive(
    ax: Any, obj: Primitive, view: str, *, color: str, label: Optional[str] = None
) -> None:
    if obj.kind is ShapeKind.SPHERE:
        _draw_sphere(ax, obj, view, color=color, label=label)
        return
    lo, hi = obj.bounds()
    if view == "top":
        import matplotlib.patches as patches

        ax.add_patch(
            patches.Rectangle(
                (lo.x, lo.z), hi.x - lo.x, hi.z - lo.z, alpha=0.35, color=color, label=label
            )
        )
        return
    corners = [
        Vector3(x, y, z)
        for y in (lo.y, hi.y)
        for x, z in ((lo.x, lo.z), (hi.x, lo.z), (hi.x, hi.z), (lo.x, hi.z))
    ]
    _plot_edges(ax, corners, _ROOM_EDGES, view, color=color, linewidth=0.6)


def _draw_sphere(
    ax: Any, obj: Primitive, view: str, *, color: str, label: Optional[str] = None
) -> None:
    if view == "top":
        import matplotlib.patches as patches

        ax.add_patch(
            patches.Circle(
                (obj.center.x, obj.center.z), obj.radius, alpha=0.6, color=color, label=label
            )
        )
        return
    import numpy as np

    u = np.linspace(0.0, 2.0 * np.pi, 16)
    v = np.linspace(0.0, np.pi, 9)
    r = obj.radius
    xs = obj.center.x + r * np.outer(np.cos(u), np.sin(v))
    zs = obj.center.z + r * np.outer(np.sin(u), np.sin(v))
    ys = obj.center.y + r * np.outer(np.ones_like(u), np.cos(v))
    ax.plot_wireframe(xs, zs, ys, color=color, linewidth=0.4, label=label)


def _hex(color: int) -> str:
    return f"#{color:06x}"


def _draw_segments(ax: Any, segments: Sequence[RaySegment], view: str) -> None:
    for seg in segments:
        start, end = _project(seg.start, view), _project(seg.end, view)
        ax.plot(
            *zip(start, end),
            color=_hex(seg.color),
            alpha=max(0.0, min(1.0, seg.opacity)),
            linewidth=1.2 if seg.hits_listener else 0.6,
        )


def _add_ray_legend(
    ax: Any, segments: Sequence[RaySegment], max_bounces: Optional[int]
) -> None:
    """Add one proxy legend entry per color present in ``segments``."""
    deepest = max(seg.bounce for seg in segments)
    used = {seg.color for seg in segments}
    for entry in ray_legend(max_bounces if max_bounces is not None else deepest):
        if entry["color"] in used:
            ax.plot([], [], color=_hex(entry["color"]), label=entry["label"])
