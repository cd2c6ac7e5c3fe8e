from __future__ import annotations

from dataclasses import dataclass
from math import hypot
from typing import NamedTuple


@dataclass(frozen=True)
class Point2D:
    """Real-valued position in facility units."""

    x: float
    y: float

    def distance_to(self, other: "Point2D") -> float:
        return hypot(self.x - other.x, self.y - other.y)


class GridCell(NamedTuple):
    """Integer index into an occupancy grid (column x, row y)."""

    x: int
    y: int


@dataclass(frozen=True)
class Pose:
    """Agent pose.

    - position: facility coordinates
    - heading_deg: heading in degrees, wrapped to [0, 360)
    """

    position: Point2D
    heading_deg: float = 0.0


@dataclass(frozen=True)
class Beacon:
    id: str
    position: Point2D
    max_range: float


@dataclass(frozen=True)
class RangeReading:
    """One noisy distance sample; position is the beacon's known location."""

    beacon_id: str
    measured_distance: float
    position: Point2D


@dataclass(frozen=True)
class Target:
    id: str
    position: Point2D
    label: str = ""
