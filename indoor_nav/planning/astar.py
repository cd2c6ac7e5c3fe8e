"""A* over a walkability grid: 4-connected moves, unit cost, Manhattan heuristic."""

from __future__ import annotations

import heapq
import itertools
from typing import Dict, List

import numpy as np

from ..types import GridCell
from .grid import is_walkable

# Expansion order is fixed so results are reproducible
NEIGHBORS = ((1, 0), (-1, 0), (0, 1), (0, -1))


def manhattan(a: GridCell, b: GridCell) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


def _reconstruct(came_from: Dict[GridCell, GridCell], goal: GridCell) -> List[GridCell]:
    path = [goal]
    node = goal
    while node in came_from:
        node = came_from[node]
        path.append(node)
    path.reverse()
    return path


def find_path(grid: np.ndarray, start: GridCell, goal: GridCell) -> List[GridCell]:
    """Shortest 4-connected path from start to goal, both ends included.

    Returns an empty list when start or goal is blocked/out of bounds or the
    goal cannot be reached. Inputs are never relocated.

    Ties on f-score go to the lower heuristic (closer to goal), then to the
    node pushed first.
    """
    start = GridCell(*start)
    goal = GridCell(*goal)
    if not is_walkable(grid, start) or not is_walkable(grid, goal):
        return []
    if start == goal:
        return [start]

    counter = itertools.count()
    g_score: Dict[GridCell, int] = {start: 0}
    f_score: Dict[GridCell, int] = {start: manhattan(start, goal)}
    came_from: Dict[GridCell, GridCell] = {}
    open_heap: list[tuple[int, int, int, GridCell]] = []
    heapq.heappush(open_heap, (f_score[start], manhattan(start, goal), next(counter), start))
    closed: set[GridCell] = set()

    while open_heap:
        f, _h, _seq, current = heapq.heappop(open_heap)
        if current in closed or f > f_score.get(current, f):
            continue
        if current == goal:
            return _reconstruct(came_from, goal)
        closed.add(current)

        tentative = g_score[current] + 1
        for dx, dy in NEIGHBORS:
            nbr = GridCell(current.x + dx, current.y + dy)
            if nbr in closed or not is_walkable(grid, nbr):
                continue
            if tentative < g_score.get(nbr, float("inf")):
                came_from[nbr] = current
                g_score[nbr] = tentative
                h = manhattan(nbr, goal)
                f_score[nbr] = tentative + h
                heapq.heappush(open_heap, (tentative + h, h, next(counter), nbr))

    return []


def path_length(path: List[GridCell]) -> int:
    """Number of unit moves along a cell path."""
    return max(0, len(path) - 1)
