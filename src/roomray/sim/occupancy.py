"""Voxel occupancy grid used to validate candidate placements."""

from __future__ import annotations

import logging
import math
from enum import Enum, IntEnum
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

import torch
from torch import Tensor

from ..config import EPSILON
from ..geometry.primitives import Primitive
from ..geometry.vector import Vector3

logger = logging.getLogger(__name__)


class CellState(IntEnum):
    EMPTY = 0
    STATIC_OBSTACLE = 1
    SOURCE = 2
    LISTENER = 3
    OUT_OF_BOUNDS = 4


class Role(str, Enum):
    """Movable object roles; also the optimizer's turn marker."""

    SOURCE = "source"
    LISTENER = "listener"

    @property
    def state(self) -> CellState:
        return CellState.SOURCE if self is Role.SOURCE else CellState.LISTENER

    @property
    def other(self) -> "Role":
        return Role.LISTENER if self is Role.SOURCE else Role.SOURCE


class OccupancyGrid:
    """Uniform voxel grid over the room classifying each cell.

    Cells are stored in a ``torch.uint8`` tensor of shape ``(nx, ny, nz)``.
    Static obstacles are rasterized once by ``build``; the source and
    listener footprints are maintained by ``update``. A dynamic occupant never
    overwrites a static cell.

    Examples:
        ```python
        grid = OccupancyGrid(room.min_corner, room.max_corner, cell_size=0.5)
        grid.build(scene.static_obstacles())
        grid.place("SoundSource", source.center, source.radius, Role.SOURCE)
        ok = grid.is_valid(candidate, 0.3, Role.SOURCE, listener.center, 0.25)
        ```
    """

    def __init__(self, room_min: Vector3, room_max: Vector3, cell_size: float) -> None:
        if not cell_size > 0:
            raise ValueError("cell_size must be positive")
        extent = room_max - room_min
        if any(not e > 0 for e in extent):
            raise ValueError("room extents must be positive")
        self.room_min = room_min
        self.room_max = room_max
        self.cell_size = float(cell_size)
        self.shape = tuple(max(1, math.ceil(e / self.cell_size)) for e in extent)
        self.cells = torch.zeros(self.shape, dtype=torch.uint8)
        self._origin = torch.tensor(list(room_min), dtype=torch.float64)
        self._footprints: Dict[Hashable, Tensor] = {}
        self._built = False
        logger.debug(
            "occupancy grid %s cells of %.3f over %s..%s",
            self.shape,
            self.cell_size,
            room_min,
            room_max,
        )

    @property
    def is_built(self) -> bool:
        return self._built

    def build(self, static_obstacles: Iterable[Primitive]) -> None:
        """Rasterize the bounding boxes of static obstacles into the grid."""
        if self._built:
            raise RuntimeError("occupancy grid is already built")
        marked = 0
        for obj in static_obstacles:
            if not obj.static:
                continue
            lo, hi = obj.bounds()
            start = self._index_of(lo)
            stop = self._index_of(hi)
            if any(s > n - 1 or e < 0 for s, e, n in zip(start, stop, self.shape)):
                logger.debug("static object %s lies outside the grid", obj.name)
                continue
            sx, sy, sz = (max(0, s) for s in start)
            ex, ey, ez = (min(n - 1, e) + 1 for e, n in zip(stop, self.shape))
            self.cells[sx:ex, sy:ey, sz:ez] = int(CellState.STATIC_OBSTACLE)
            marked += 1
        self._built = True
        logger.debug(
            "marked %d static obstacles (%d cells)", marked, self.count(CellState.STATIC_OBSTACLE)
        )

    def is_valid(
        self,
        pos: Vector3,
        extent: float,
        role: Role,
        other_pos: Optional[Vector3] = None,
        other_extent: float = 0.0,
    ) -> bool:
        """Return True when ``pos`` is a legal center for an object of ``extent``.

        Rejects positions whose containing cell, or any cell whose center is
        within ``extent``, is outside the grid or static. Then rejects overlap
        with the other movable object's bounding sphere.
        """
        if self.state_at(pos) in (CellState.OUT_OF_BOUNDS, CellState.STATIC_OBSTACLE):
            return False
        idx, dist2 = self._neighborhood(pos, extent)
        near = dist2 < extent * extent
        idx = idx[near]
        inside = self._in_bounds(idx)
        if not bool(inside.all()):
            return False
        ix, iy, iz = idx.unbind(-1)
        if bool((self.cells[ix, iy, iz] == int(CellState.STATIC_OBSTACLE)).any()):
            return False
        if other_pos is not None:
            reach = extent + other_extent
            if pos.distance_squared_to(other_pos) < reach * reach + EPSILON:
                return False
        return True

    def update(
        self,
        object_id: Hashable,
        old_pos: Vector3,
        new_pos: Vector3,
        extent: float,
        role: Role,
    ) -> None:
        """Move the footprint of ``object_id`` from ``old_pos`` to ``new_pos``."""
        state = int(role.state)
        mark_radius = extent + self.cell_size

        previous = self._footprints.pop(object_id, None)
        if previous is None:
            previous, _ = self._neighborhood(old_pos, mark_radius)
            previous = previous[self._in_bounds(previous)]
        if previous.numel():
            px, py, pz = previous.unbind(-1)
            own = self.cells[px, py, pz] == state
            self.cells[px[own], py[own], pz[own]] = int(CellState.EMPTY)

        idx, dist2 = self._neighborhood(new_pos, mark_radius)
        idx = idx[(dist2 < mark_radius * mark_radius) & self._in_bounds(idx)]
        if idx.numel():
            ix, iy, iz = idx.unbind(-1)
            free = self.cells[ix, iy, iz] == int(CellState.EMPTY)
            idx = idx[free]
            self.cells[ix[free], iy[free], iz[free]] = state
        self._footprints[object_id] = idx

    def place(self, object_id: Hashable, pos: Vector3, extent: float, role: Role) -> None:
        self.update(object_id, pos, pos, extent, role)

    def state_at(self, pos: Vector3) -> CellState:
        upper = [lo + n * self.cell_size for lo, n in zip(self.room_min, self.shape)]
        if any(p < lo or p >= hi for p, lo, hi in zip(pos, self.room_min, upper)):
            return CellState.OUT_OF_BOUNDS
        ix, iy, iz = (min(i, n - 1) for i, n in zip(self._index_of(pos), self.shape))
        return CellState(int(self.cells[ix, iy, iz]))

    def cell_state(self, ix: int, iy: int, iz: int) -> CellState:
        if not all(0 <= i < n for i, n in zip((ix, iy, iz), self.shape)):
            return CellState.OUT_OF_BOUNDS
        return CellState(int(self.cells[ix, iy, iz]))

    def cell_center(self, ix: int, iy: int, iz: int) -> Vector3:
        return Vector3(
            *((lo + (i + 0.5) * self.cell_size) for lo, i in zip(self.room_min, (ix, iy, iz)))
        )

    def count(self, state: CellState) -> int:
        return int((self.cells == int(state)).sum())

    def dynamic_mask(self, role: Optional[Role] = None) -> Tensor:
        """Boolean mask of cells held by ``role`` (or by either movable object)."""
        if role is None:
            return (self.cells == int(CellState.SOURCE)) | (self.cells == int(CellState.LISTENER))
        return self.cells == int(role.state)

    def occupied_cells(self) -> List[Dict[str, float]]:
        """Return every non-empty cell as ``{"x", "y", "z", "state", "size"}``."""
        out: List[Dict[str, float]] = []
        for ix, iy, iz in torch.nonzero(self.cells).tolist():
            center = self.cell_center(ix, iy, iz)
            out.append(
                {
                    "x": center.x,
                    "y": center.y,
                    "z": center.z,
                    "state": int(self.cells[ix, iy, iz]),
                    "size": self.cell_size,
                }
            )
        return out

    def _index_of(self, pos: Vector3) -> Tuple[int, int, int]:
        return tuple(
            math.floor((p - lo) / self.cell_size) for p, lo in zip(pos, self.room_min)
        )

    def _in_bounds(self, idx: Tensor) -> Tensor:
        upper = torch.tensor(self.shape, dtype=idx.dtype)
        return ((idx >= 0) & (idx < upper)).all(dim=-1)

    def _neighborhood(self, pos: Vector3, radius: float) -> Tuple[Tensor, Tensor]:
        """Indices of the cell block covering ``pos +- radius`` and their squared
        center distances to ``pos``. Indices may fall outside the grid."""
        lo = self._index_of(pos - Vector3(radius, radius, radius))
        hi = self._index_of(pos + Vector3(radius, radius, radius))
        axes = [torch.arange(a, b + 1, dtype=torch.long) for a, b in zip(lo, hi)]
        grid = torch.meshgrid(*axes, indexing="ij")
        idx = torch.stack(grid, dim=-1).reshape(-1, 3)
        centers = self._origin + (idx.to(torch.float64) + 0.5) * self.cell_size
        target = torch.tensor(list(pos), dtype=torch.float64)
        dist2 = ((centers - target) ** 2).sum(dim=-1)
        return idx, dist2
