"""2D trilateration by Gauss-Newton nonlinear least squares.

Residual per beacon i: r_i = ||p - b_i|| - d_i
Jacobian row:          [(x - x_i) / dist_i, (y - y_i) / dist_i]
Update:                p <- p - (J^T J)^-1 J^T r, solved in closed form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import EstimatorConfig
from ..constants import MIN_BEACONS
from ..sim.ranging import RangeSimulator
from ..types import Beacon, Point2D, RangeReading


@dataclass(frozen=True)
class TrilaterationResult:
    position: Point2D
    iterations: int
    converged: bool
    degenerate: bool  # near-singular normal equations; position is the partial estimate
    rms_residual: float


def _residuals(p: np.ndarray, anchors: np.ndarray, ranges: np.ndarray, dist_eps: float) -> Tuple[np.ndarray, np.ndarray]:
    diff = p[None, :] - anchors  # (N, 2)
    dist = np.linalg.norm(diff, axis=1)
    dist = np.maximum(dist, dist_eps)
    return dist - ranges, diff / dist[:, None]


def estimate_position(
    readings: Sequence[RangeReading],
    initial_guess: Optional[Point2D] = None,
    config: Optional[EstimatorConfig] = None,
) -> Optional[TrilaterationResult]:
    """Estimate the 2D position that best explains the range readings.

    Args:
        readings: at least three readings, each carrying its beacon position.
        initial_guess: start point; defaults to the centroid of the beacons.
        config: iteration cap and numeric tolerances.

    Returns:
        TrilaterationResult, or None when fewer than three readings are given.
    """
    cfg = config or EstimatorConfig()
    if len(readings) < MIN_BEACONS:
        return None

    anchors = np.array([[r.position.x, r.position.y] for r in readings], dtype=np.float64)
    ranges = np.array([r.measured_distance for r in readings], dtype=np.float64)

    if initial_guess is not None:
        p = np.array([initial_guess.x, initial_guess.y], dtype=np.float64)
    else:
        p = anchors.mean(axis=0)

    converged = False
    degenerate = False
    it = 0
    for it in range(1, cfg.iterations + 1):
        r, J = _residuals(p, anchors, ranges, cfg.dist_eps)
        JtJ = J.T @ J
        Jtr = J.T @ r

        a, b, d = JtJ[0, 0], JtJ[0, 1], JtJ[1, 1]
        det = a * d - b * b
        if abs(det) < cfg.det_eps:
            # Collinear or coincident beacons: keep what we have
            degenerate = True
            break

        dx = (d * Jtr[0] - b * Jtr[1]) / det
        dy = (a * Jtr[1] - b * Jtr[0]) / det
        p = p - np.array([dx, dy])

        if abs(dx) + abs(dy) < cfg.converge_tol:
            converged = True
            break

    r, _ = _residuals(p, anchors, ranges, cfg.dist_eps)
    rms = float(np.sqrt(np.mean(r * r)))
    return TrilaterationResult(
        position=Point2D(float(p[0]), float(p[1])),
        iterations=it,
        converged=converged,
        degenerate=degenerate,
        rms_residual=rms,
    )


def simulate_and_estimate(
    simulator: RangeSimulator,
    beacons: Sequence[Beacon],
    true_position: Point2D,
    initial_guess: Optional[Point2D] = None,
    config: Optional[EstimatorConfig] = None,
) -> Tuple[list[RangeReading], Optional[TrilaterationResult]]:
    """Full pipeline from a true position to readings and an estimate."""
    readings = simulator.measure(true_position, beacons)
    return readings, estimate_position(readings, initial_guess, config)
