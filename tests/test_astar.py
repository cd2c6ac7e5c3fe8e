import numpy as np

from indoor_nav.planning.astar import find_path, path_length
from indoor_nav.types import GridCell


def assert_contiguous(path):
    for a, b in zip(path, path[1:]):
        assert abs(a.x - b.x) + abs(a.y - b.y) == 1


def test_empty_grid_manhattan_length():
    grid = np.ones((10, 10), dtype=bool)
    path = find_path(grid, GridCell(0, 0), GridCell(5, 5))
    assert path[0] == GridCell(0, 0)
    assert path[-1] == GridCell(5, 5)
    assert path_length(path) == 10
    assert_contiguous(path)


def test_start_equals_goal():
    grid = np.ones((4, 4), dtype=bool)
    assert find_path(grid, GridCell(2, 2), GridCell(2, 2)) == [GridCell(2, 2)]


def test_blocked_endpoints_return_empty():
    grid = np.ones((5, 5), dtype=bool)
    grid[4, 4] = False
    assert find_path(grid, GridCell(0, 0), GridCell(4, 4)) == []
    assert find_path(grid, GridCell(4, 4), GridCell(0, 0)) == []
    assert find_path(grid, GridCell(0, 0), GridCell(7, 1)) == []


def test_enclosed_goal_unreachable():
    grid = np.ones((9, 9), dtype=bool)
    grid[3:6, 3:6] = False
    grid[4, 4] = True
    assert find_path(grid, GridCell(0, 0), GridCell(4, 4)) == []


def test_detour_through_gap():
    grid = np.ones((10, 10), dtype=bool)
    grid[0:9, 5] = False  # wall at x=5, open only at y=9
    path = find_path(grid, GridCell(0, 0), GridCell(9, 0))
    assert path_length(path) == 9 + 2 * 9
    assert_contiguous(path)
    assert GridCell(5, 9) in path
    assert all(grid[c.y, c.x] for c in path)


def test_accepts_plain_tuples():
    grid = np.ones((3, 3), dtype=bool)
    path = find_path(grid, (0, 0), (2, 0))
    assert path == [GridCell(0, 0), GridCell(1, 0), GridCell(2, 0)]


def test_tie_break_prefers_lower_heuristic_then_push_order():
    grid = np.ones((3, 3), dtype=bool)
    path = find_path(grid, GridCell(0, 0), GridCell(2, 2))
    assert path == [GridCell(0, 0), GridCell(1, 0), GridCell(2, 0), GridCell(2, 1), GridCell(2, 2)]


def test_repeatable():
    rng = np.random.default_rng(9)
    grid = rng.random((25, 25)) > 0.25
    grid[0, 0] = grid[24, 24] = True
    first = find_path(grid, GridCell(0, 0), GridCell(24, 24))
    second = find_path(grid, GridCell(0, 0), GridCell(24, 24))
    assert first == second
