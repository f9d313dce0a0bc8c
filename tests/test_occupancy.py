import pytest
import torch

from roomray import CellState, OccupancyGrid, Primitive, Role, Vector3


def _grid(cell_size: float = 0.5) -> OccupancyGrid:
    return OccupancyGrid(Vector3(0.0, 0.0, 0.0), Vector3(10.0, 5.0, 4.0), cell_size)


def test_grid_shape_and_dtype():
    grid = OccupancyGrid(Vector3(0.0, 0.0, 0.0), Vector3(10.0, 5.0, 3.2), 0.5)
    assert grid.shape == (20, 10, 7)
    assert grid.cells.dtype == torch.uint8
    assert grid.count(CellState.EMPTY) == 20 * 10 * 7

    tiny = OccupancyGrid(Vector3(0.0, 0.0, 0.0), Vector3(0.1, 0.1, 0.1), 1.0)
    assert tiny.shape == (1, 1, 1)


def test_grid_configuration_errors():
    with pytest.raises(ValueError, match="cell_size must be positive"):
        _grid(cell_size=0.0)
    with pytest.raises(ValueError, match="room extents must be positive"):
        OccupancyGrid(Vector3(0.0, 0.0, 0.0), Vector3(1.0, 0.0, 1.0), 0.5)


def test_build_marks_static_obstacles_once():
    grid = _grid()
    crate = Primitive.box("Crate", Vector3(5.0, 1.0, 2.0), Vector3(1.0, 1.0, 1.0))
    grid.build([crate])
    assert grid.is_built
    assert grid.state_at(Vector3(5.0, 1.0, 2.0)) is CellState.STATIC_OBSTACLE
    assert grid.state_at(Vector3(1.0, 1.0, 1.0)) is CellState.EMPTY
    assert grid.count(CellState.STATIC_OBSTACLE) > 0
    with pytest.raises(RuntimeError, match="already built"):
        grid.build([crate])


def test_state_queries_out_of_bounds():
    grid = _grid()
    grid.build([])
    assert grid.state_at(Vector3(-0.1, 1.0, 1.0)) is CellState.OUT_OF_BOUNDS
    assert grid.state_at(Vector3(1.0, 5.0, 1.0)) is CellState.OUT_OF_BOUNDS
    assert grid.cell_state(-1, 0, 0) is CellState.OUT_OF_BOUNDS
    assert grid.cell_state(0, 0, 0) is CellState.EMPTY
    assert grid.cell_center(0, 0, 0) == Vector3(0.25, 0.25, 0.25)


def test_is_valid_rejects_static_and_out_of_bounds():
    grid = _grid()
    grid.build([Primitive.box("Crate", Vector3(5.0, 1.0, 2.0), Vector3(1.0, 1.0, 1.0))])
    assert grid.is_valid(Vector3(2.0, 2.0, 2.0), 0.3, Role.SOURCE)
    assert not grid.is_valid(Vector3(5.0, 1.0, 2.0), 0.3, Role.SOURCE)
    assert not grid.is_valid(Vector3(4.3, 1.0, 2.0), 0.6, Role.SOURCE)
    assert not grid.is_valid(Vector3(0.05, 2.0, 2.0), 0.5, Role.SOURCE)
    assert not grid.is_valid(Vector3(-1.0, 2.0, 2.0), 0.1, Role.LISTENER)


def test_is_valid_rejects_overlap_with_other_object():
    grid = _grid()
    grid.build([])
    pos = Vector3(2.0, 2.0, 2.0)
    assert not grid.is_valid(pos, 0.3, Role.SOURCE, Vector3(2.4, 2.0, 2.0), 0.25)
    assert grid.is_valid(pos, 0.3, Role.SOURCE, Vector3(3.0, 2.0, 2.0), 0.25)


def test_place_marks_role_cells_without_overwriting_static():
    grid = _grid()
    grid.build([Primitive.box("Crate", Vector3(5.0, 1.0, 2.0), Vector3(1.0, 1.0, 1.0))])
    static_before = grid.count(CellState.STATIC_OBSTACLE)
    grid.place("SoundSource", Vector3(5.0, 2.0, 2.0), 0.3, Role.SOURCE)
    grid.place("Listener", Vector3(8.0, 2.0, 2.0), 0.25, Role.LISTENER)
    assert grid.count(CellState.STATIC_OBSTACLE) == static_before
    assert grid.count(CellState.SOURCE) > 0
    assert grid.count(CellState.LISTENER) > 0
    mask = grid.dynamic_mask()
    assert int(mask.sum()) == grid.count(CellState.SOURCE) + grid.count(CellState.LISTENER)
    assert torch.equal(grid.dynamic_mask(Role.SOURCE), grid.cells == int(CellState.SOURCE))


def test_update_round_trip_restores_dynamic_cells():
    grid = _grid()
    grid.build([Primitive.box("Crate", Vector3(5.0, 1.0, 2.0), Vector3(1.0, 1.0, 1.0))])
    a = Vector3(2.0, 2.0, 2.0)
    b = Vector3(3.5, 2.5, 1.5)
    grid.place("SoundSource", a, 0.3, Role.SOURCE)
    grid.place("Listener", Vector3(8.0, 2.0, 2.0), 0.25, Role.LISTENER)
    before = grid.cells.clone()

    grid.update("SoundSource", a, b, 0.3, Role.SOURCE)
    assert not torch.equal(grid.cells, before)
    assert grid.state_at(b) is CellState.SOURCE
    assert grid.state_at(a) is CellState.EMPTY

    grid.update("SoundSource", b, a, 0.3, Role.SOURCE)
    assert torch.equal(grid.cells, before)


def test_update_without_footprint_clears_near_old_position():
    grid = _grid()
    grid.build([])
    a = Vector3(2.0, 2.0, 2.0)
    grid.place("first", a, 0.3, Role.LISTENER)
    assert grid.state_at(a) is CellState.LISTENER
    grid.update("second", a, Vector3(7.0, 2.0, 2.0), 0.3, Role.LISTENER)
    assert grid.state_at(a) is CellState.EMPTY
    assert grid.state_at(Vector3(7.0, 2.0, 2.0)) is CellState.LISTENER


def test_occupied_cells_export():
    grid = _grid()
    grid.build([Primitive.box("Crate", Vector3(5.0, 1.0, 2.0), Vector3(1.0, 1.0, 1.0))])
    cells = grid.occupied_cells()
    assert len(cells) == grid.count(CellState.STATIC_OBSTACLE)
    assert {c["state"] for c in cells} == {int(CellState.STATIC_OBSTACLE)}
    assert all(c["size"] == 0.5 for c in cells)
