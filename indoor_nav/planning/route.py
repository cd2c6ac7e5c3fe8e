"""Greedy multi-waypoint routing over the walkability grid.

Targets are visited in nearest-neighbour order (Manhattan distance between
snapped cells, ties by input order). Each leg is an A* path; legs are
stitched into one polyline without repeating the joint cell. A leg that
cannot be reached contributes no geometry, but the cursor still moves to
its target so the remaining legs are planned from there.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..config import RouteConfig
from ..constants import WALKING_SPEED_UNITS_PER_MIN
from ..types import GridCell, Point2D, Target
from .astar import find_path, manhattan, path_length
from .grid import same_component, snap_to_walkable, walkable_components

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteLeg:
    target_id: str
    start: GridCell
    goal: Optional[GridCell]  # None when the target could not be snapped
    cells: tuple[GridCell, ...]

    @property
    def reachable(self) -> bool:
        return len(self.cells) > 0


@dataclass(frozen=True)
class Route:
    cells: tuple[GridCell, ...]
    order: tuple[str, ...]  # target ids in visiting order
    legs: tuple[RouteLeg, ...]
    unreachable: tuple[str, ...] = ()
    walking_speed: float = field(default=WALKING_SPEED_UNITS_PER_MIN, compare=False)

    @property
    def total_distance(self) -> float:
        """Polyline length in facility units (unit moves, skipped legs excluded)."""
        return float(sum(path_length(list(leg.cells)) for leg in self.legs))

    @property
    def estimated_time_min(self) -> float:
        return self.total_distance / self.walking_speed

    def as_array(self) -> np.ndarray:
        """Polyline as an (N, 2) float array of (x, y)."""
        if not self.cells:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array(self.cells, dtype=np.float64)


def order_targets(cursor: GridCell, snapped: Sequence[tuple[Target, GridCell]]) -> List[tuple[Target, GridCell]]:
    """Greedy nearest-neighbour ordering from cursor; ties keep input order."""
    remaining = list(snapped)
    ordered: List[tuple[Target, GridCell]] = []
    current = cursor
    while remaining:
        # min() returns the first of equal keys, i.e. input order
        best = min(range(len(remaining)), key=lambda k: manhattan(current, remaining[k][1]))
        target, cell = remaining.pop(best)
        ordered.append((target, cell))
        current = cell
    return ordered


class RoutePlanner:
    """Plans routes over a fixed grid and reports whether the route changed.

    Interface:
    - plan(cursor, targets) -> Route | None   (pure)
    - update(cursor, targets) -> bool         (stores the route, True on change)
    """

    def __init__(self, grid: np.ndarray, config: Optional[RouteConfig] = None) -> None:
        assert grid.ndim == 2 and grid.dtype == bool
        self.grid = grid
        self.cfg = config or RouteConfig()
        self._labels: Optional[np.ndarray] = None
        if self.cfg.use_components:
            self._labels, n = walkable_components(grid)
            logger.debug("Walkability grid has %d connected regions", n)
        self.route: Optional[Route] = None

    def _leg(self, start: GridCell, goal: GridCell) -> List[GridCell]:
        if self._labels is not None and not same_component(self._labels, start, goal):
            return []
        return find_path(self.grid, start, goal)

    def plan(self, cursor: Point2D, targets: Sequence[Target]) -> Optional[Route]:
        if not targets:
            return None
        start = snap_to_walkable(self.grid, cursor)
        if start is None:
            logger.warning("No walkable cell in grid; cannot plan route")
            return None

        snapped: List[tuple[Target, GridCell]] = []
        unsnappable: List[Target] = []
        for t in targets:
            cell = snap_to_walkable(self.grid, t.position)
            if cell is None:
                unsnappable.append(t)
            else:
                snapped.append((t, cell))

        cells: List[GridCell] = []
        legs: List[RouteLeg] = []
        unreachable: List[str] = []
        current = start
        for target, goal in order_targets(start, snapped):
            path = self._leg(current, goal)
            legs.append(RouteLeg(target.id, current, goal, tuple(path)))
            if path:
                if cells and cells[-1] == path[0]:
                    cells.extend(path[1:])
                else:
                    cells.extend(path)
            else:
                unreachable.append(target.id)
                logger.warning("Target %s at cell %s is unreachable from %s", target.id, tuple(goal), tuple(current))
            current = goal

        for t in unsnappable:
            legs.append(RouteLeg(t.id, current, None, ()))
            unreachable.append(t.id)

        return Route(
            cells=tuple(cells),
            order=tuple(leg.target_id for leg in legs),
            legs=tuple(legs),
            unreachable=tuple(unreachable),
            walking_speed=self.cfg.walking_speed,
        )

    def update(self, cursor: Point2D, targets: Sequence[Target]) -> bool:
        """Re-plan and keep the result; True only if the polyline changed."""
        new = self.plan(cursor, targets)
        old = self.route
        if old is None and new is None:
            return False
        if old is not None and new is not None and old.cells == new.cells:
            if old != new:
                # Same polyline, different bookkeeping (e.g. an unreachable target was added)
                self.route = new
            return False
        self.route = new
        return True
