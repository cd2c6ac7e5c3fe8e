"""Session orchestrator tying ranging, estimation and routing together.

Two update chains share one tick source:
- pose chain: true pose -> range readings -> trilateration -> estimated pose
- route chain: targets / cursor cell changes -> throttled re-plan

Each chain re-derives its output from the current snapshots; nothing is
patched incrementally. The host drives the engine by calling
on_control_event() and on_tick() from a single thread.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from .config import EngineConfig
from .estimation.trilateration import TrilaterationResult, estimate_position
from .facility import FacilityModel
from .planning.grid import build_walkable_grid, world_to_cell
from .planning.route import Route, RoutePlanner
from .sim.ranging import RangeSimulator
from .types import GridCell, Point2D, Pose, RangeReading, Target

logger = logging.getLogger(__name__)

# Screen convention: y grows downwards, heading 0 deg points along +x
MOVES: Dict[str, tuple[int, int, float]] = {
    "up": (0, -1, 270.0),
    "down": (0, 1, 90.0),
    "left": (-1, 0, 180.0),
    "right": (1, 0, 0.0),
}
ROTATIONS: Dict[str, float] = {
    "rotate_left": -1.0,
    "rotate_right": 1.0,
}


def wrap_deg(angle: float) -> float:
    """Normalize angle to [0, 360)."""
    return angle % 360.0


class NavigationEngine:
    """Positioning and routing state for one session.

    Interface:
    - on_control_event(direction) -> Pose
    - on_tick(now?) -> bool          (True if the route changed)
    - set_targets / add_target / remove_target / clear_targets
    - true_pose, estimated_pose, cursor_position, readings, route
    """

    def __init__(
        self,
        facility: FacilityModel,
        config: Optional[EngineConfig] = None,
        *,
        start: Optional[Point2D] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.facility = facility
        self.cfg = config or EngineConfig()
        self._clock = clock
        if rng is None and self.cfg.seed is not None:
            rng = np.random.default_rng(self.cfg.seed)

        self.grid = build_walkable_grid(facility.bounds, facility.obstacles)
        self.simulator = RangeSimulator(
            noise_std=self.cfg.ranging.noise_std,
            max_beacons=self.cfg.ranging.max_beacons,
            range_scale=self.cfg.ranging.range_scale,
            rng=rng,
        )
        self.planner = RoutePlanner(self.grid, self.cfg.route)

        if start is None:
            entrance = facility.entrances[0].position if facility.entrances else Point2D(0.0, 0.0)
            start = entrance
        self.true_pose = Pose(facility.bounds.clamp(start), 0.0)
        self.estimated_pose: Optional[Pose] = None
        self._last_estimate: Optional[Pose] = None
        self.estimate: Optional[TrilaterationResult] = None
        self.estimate_ok = False
        self.readings: List[RangeReading] = []

        self._targets: Dict[str, Target] = {}
        self._route_dirty = False
        self._last_plan_t: Optional[float] = None
        self._planned_cell: Optional[GridCell] = None
        self.route_version = 0
        self.on_route_changed: Optional[Callable[[Optional[Route]], None]] = None

        logger.info(
            "Navigation session started: %dx%d grid, %d walkable cells, %d beacons",
            facility.bounds.width,
            facility.bounds.height,
            int(self.grid.sum()),
            len(facility.beacons),
        )
        self._update_pose()

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------
    @property
    def route(self) -> Optional[Route]:
        return self.planner.route

    @property
    def targets(self) -> List[Target]:
        return list(self._targets.values())

    @property
    def cursor_position(self) -> Point2D:
        """Position routes are planned from: estimate if any, else truth."""
        if self.estimated_pose is not None:
            return self.estimated_pose.position
        return self.true_pose.position

    # ------------------------------------------------------------------
    # Pose chain
    # ------------------------------------------------------------------
    def on_control_event(self, direction: str) -> Pose:
        """Apply one discrete control event to the true pose."""
        pos = self.true_pose.position
        heading = self.true_pose.heading_deg
        step = self.cfg.control.step
        if direction in MOVES:
            dx, dy, heading = MOVES[direction]
            pos = Point2D(pos.x + dx * step, pos.y + dy * step)
        elif direction in ROTATIONS:
            heading = heading + ROTATIONS[direction] * self.cfg.control.heading_step_deg
        else:
            raise ValueError(f"Unknown control event {direction!r}")

        clamped = self.facility.bounds.clamp(pos)
        if clamped != pos:
            logger.debug("Control event %s clamped to bounds at (%.2f, %.2f)", direction, clamped.x, clamped.y)
        self.true_pose = Pose(clamped, wrap_deg(heading))
        self._update_pose()
        return self.true_pose

    def _update_pose(self) -> None:
        self.readings = self.simulator.measure(self.true_pose.position, self.facility.beacons)
        # Centroid start keeps the estimate a function of this tick's readings only
        result = estimate_position(self.readings, None, self.cfg.estimator)
        self.estimate = result

        if result is None:
            self.estimate_ok = False
            logger.debug("Insufficient beacons (%d readings)", len(self.readings))
            if self._last_estimate is not None:
                self.estimated_pose = self._last_estimate
            elif self.cfg.fallback_to_true_pose:
                # Never estimated yet: follow the live true pose
                self.estimated_pose = self.true_pose
        else:
            self.estimate_ok = True
            if result.degenerate:
                logger.debug("Degenerate beacon geometry; using partial estimate")
            position = self.facility.bounds.clamp(result.position)
            self._last_estimate = Pose(position, self.true_pose.heading_deg)
            self.estimated_pose = self._last_estimate

        self._check_cursor_moved()

    def _check_cursor_moved(self) -> None:
        if not self._targets:
            return
        cell = world_to_cell(self.cursor_position, self.grid)
        if cell != self._planned_cell:
            self._route_dirty = True

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------
    def _clamp_target(self, target: Target) -> Target:
        clamped = self.facility.bounds.clamp(target.position)
        if clamped == target.position:
            return target
        logger.debug("Target %s clamped to bounds", target.id)
        return Target(target.id, clamped, target.label)

    def set_targets(self, targets: Iterable[Target]) -> None:
        self._targets = {t.id: self._clamp_target(t) for t in targets}
        self._route_dirty = True

    def add_target(self, target: Target) -> None:
        self._targets[target.id] = self._clamp_target(target)
        self._route_dirty = True

    def remove_target(self, target_id: str) -> bool:
        if self._targets.pop(target_id, None) is None:
            return False
        self._route_dirty = True
        return True

    def clear_targets(self) -> None:
        self._targets.clear()
        self._route_dirty = True

    # ------------------------------------------------------------------
    # Tick / route chain
    # ------------------------------------------------------------------
    def on_tick(self, now: Optional[float] = None) -> bool:
        """Refresh readings and estimate, then re-plan if due.

        Returns True when the route polyline changed on this tick.
        """
        self._update_pose()
        return self._maybe_replan(self._clock() if now is None else float(now))

    def _maybe_replan(self, now: float) -> bool:
        if not self._route_dirty:
            return False
        if self._last_plan_t is not None and now - self._last_plan_t < self.cfg.route.throttle_s:
            return False
        return self.replan(now)

    def replan(self, now: Optional[float] = None) -> bool:
        """Re-plan immediately from the latest cursor and targets."""
        self._last_plan_t = self._clock() if now is None else float(now)
        self._route_dirty = False
        cursor = self.cursor_position
        self._planned_cell = world_to_cell(cursor, self.grid)
        changed = self.planner.update(cursor, self.targets)
        if changed:
            self.route_version += 1
            route = self.planner.route
            if route is None:
                logger.debug("Route cleared")
            else:
                logger.debug(
                    "Route v%d: %d cells, order=%s, unreachable=%s",
                    self.route_version,
                    len(route.cells),
                    list(route.order),
                    list(route.unreachable),
                )
            if self.on_route_changed is not None:
                self.on_route_changed(route)
        return changed
