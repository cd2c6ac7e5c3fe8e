"""Beacon range-measurement model.

Design decisions:
- A beacon is heard iff its true distance is within max_range * range_scale.
- Noise: zero-mean Gaussian from a Box-Muller transform over two uniform
  draws in (0, 1], added to the true distance and floored at zero.
- Readings are sorted by noisy distance and truncated to the
  max(3, max_beacons) closest so that trilateration always has its minimum
  when enough beacons are heard.
"""

from __future__ import annotations

from math import cos, log, pi, sqrt
from typing import List, Optional, Sequence

import numpy as np

from ..constants import MIN_BEACONS, RANGE_NOISE_STD, RANGE_SCALE
from ..types import Beacon, Point2D, RangeReading


def box_muller(rng: np.random.Generator, mean: float = 0.0, std: float = 1.0) -> float:
    """Draw one Gaussian sample from two independent uniform draws."""
    # Generator.random() is in [0, 1); 1 - u maps it to (0, 1] so log() is finite
    u = 1.0 - float(rng.random())
    v = 1.0 - float(rng.random())
    z0 = sqrt(-2.0 * log(u)) * cos(2.0 * pi * v)
    return mean + z0 * std


class RangeSimulator:
    """Noisy distance readings from fixed beacons to the agent.

    Args:
        noise_std: Gaussian noise std in facility units.
        max_beacons: keep at most max(3, max_beacons) readings; None keeps all.
        range_scale: multiplier applied to every beacon's nominal range.
        rng: optional numpy Generator; if None, created internally.
    """

    def __init__(
        self,
        *,
        noise_std: float = RANGE_NOISE_STD,
        max_beacons: Optional[int] = None,
        range_scale: float = RANGE_SCALE,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        assert noise_std >= 0.0
        assert range_scale > 0.0
        self.noise_std = float(noise_std)
        self.max_beacons = None if max_beacons is None else int(max_beacons)
        self.range_scale = float(range_scale)
        self._rng = rng or np.random.default_rng()

    def set_seed(self, seed: int) -> None:
        self._rng = np.random.default_rng(seed)

    def in_range(self, beacon: Beacon, true_distance: float) -> bool:
        return true_distance <= beacon.max_range * self.range_scale

    def measure(self, position: Point2D, beacons: Sequence[Beacon]) -> List[RangeReading]:
        """Return the accepted readings, closest first."""
        usable: List[RangeReading] = []
        for beacon in beacons:
            true_distance = position.distance_to(beacon.position)
            if not self.in_range(beacon, true_distance):
                continue
            noisy = true_distance
            if self.noise_std > 0.0:
                noisy += box_muller(self._rng, 0.0, self.noise_std)
            usable.append(RangeReading(beacon.id, max(0.0, noisy), beacon.position))

        # sorted() is stable, so equal distances keep beacon order
        usable = sorted(usable, key=lambda r: r.measured_distance)
        if self.max_beacons is None:
            return usable
        return usable[: max(MIN_BEACONS, self.max_beacons)]
