"""Walkability grid: rasterize obstacles and map facility points to cells.

Grid convention: grid[y, x], shape (height, width), True = walkable.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

import numpy as np
from scipy import ndimage

from ..facility import FacilityBounds, ObstacleRegion
from ..types import GridCell, Point2D

# 4-connectivity, matching the pathfinder's move set
_FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)


def obstacle_cell_box(region: ObstacleRegion, bounds: FacilityBounds) -> tuple[int, int, int, int]:
    """Integer half-open box (x0, y0, x1, y1) covered by region, clipped to bounds."""
    min_x, min_y, max_x, max_y = region.bounding_box()
    x0 = max(0, int(math.floor(min_x)))
    y0 = max(0, int(math.floor(min_y)))
    x1 = min(bounds.width, int(math.ceil(max_x)))
    y1 = min(bounds.height, int(math.ceil(max_y)))
    return x0, y0, x1, y1


def build_walkable_grid(bounds: FacilityBounds, obstacles: Iterable[ObstacleRegion]) -> np.ndarray:
    """Rasterize obstacle regions into a boolean walkability grid."""
    grid = np.ones((bounds.height, bounds.width), dtype=bool)
    for region in obstacles:
        x0, y0, x1, y1 = obstacle_cell_box(region, bounds)
        if x0 < x1 and y0 < y1:
            grid[y0:y1, x0:x1] = False
    return grid


def in_bounds(grid: np.ndarray, cell: GridCell) -> bool:
    H, W = grid.shape
    return 0 <= cell.x < W and 0 <= cell.y < H


def is_walkable(grid: np.ndarray, cell: GridCell) -> bool:
    return in_bounds(grid, cell) and bool(grid[cell.y, cell.x])


def world_to_cell(p: Point2D, grid: np.ndarray) -> GridCell:
    """Round a facility point to the nearest cell, clipped into the grid."""
    H, W = grid.shape
    x = int(np.clip(math.floor(p.x + 0.5), 0, W - 1))
    y = int(np.clip(math.floor(p.y + 0.5), 0, H - 1))
    return GridCell(x, y)


def _ring(center: GridCell, r: int) -> Iterable[GridCell]:
    """Cells at Chebyshev distance exactly r from center."""
    cx, cy = center
    for y in range(cy - r, cy + r + 1):
        if y in (cy - r, cy + r):
            for x in range(cx - r, cx + r + 1):
                yield GridCell(x, y)
        else:
            yield GridCell(cx - r, y)
            yield GridCell(cx + r, y)


def snap_to_walkable(grid: np.ndarray, p: Point2D) -> Optional[GridCell]:
    """Nearest walkable cell to p.

    The rounded cell wins if walkable. Otherwise square rings of growing
    Chebyshev radius are searched; within the first ring that holds a
    walkable cell the one closest to p (Euclidean) is returned, ties broken
    by row-major (y, x) order. None if the grid has no walkable cell.
    """
    origin = world_to_cell(p, grid)
    if grid[origin.y, origin.x]:
        return origin
    H, W = grid.shape
    max_r = max(
        origin.x, W - 1 - origin.x, origin.y, H - 1 - origin.y
    )
    for r in range(1, max_r + 1):
        candidates = [c for c in _ring(origin, r) if is_walkable(grid, c)]
        if candidates:
            return min(
                candidates,
                key=lambda c: ((c.x - p.x) ** 2 + (c.y - p.y) ** 2, c.y, c.x),
            )
    return None


def walkable_components(grid: np.ndarray) -> tuple[np.ndarray, int]:
    """Label 4-connected walkable regions; blocked cells get label 0."""
    labels, count = ndimage.label(grid, structure=_FOUR_CONNECTED)
    return labels, int(count)


def same_component(labels: np.ndarray, a: GridCell, b: GridCell) -> bool:
    la = int(labels[a.y, a.x])
    return la != 0 and la == int(labels[b.y, b.x])
