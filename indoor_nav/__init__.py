"""Indoor positioning and routing engine."""

from .config import EngineConfig
from .engine import NavigationEngine
from .facility import FacilityModel, FacilityModelError, load_facility
from .types import Beacon, GridCell, Point2D, Pose, RangeReading, Target

__all__ = [
    "EngineConfig",
    "NavigationEngine",
    "FacilityModel",
    "FacilityModelError",
    "load_facility",
    "Beacon",
    "GridCell",
    "Point2D",
    "Pose",
    "RangeReading",
    "Target",
]
