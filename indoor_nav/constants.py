from __future__ import annotations

# Ranging
RANGE_NOISE_STD: float = 0.5
RANGE_SCALE: float = 1.0
BEACON_DEFAULT_RANGE: float = 25.0
MIN_BEACONS: int = 3

# Trilateration
GN_ITERATIONS: int = 10
GN_DET_EPS: float = 1e-6
GN_CONVERGE_TOL: float = 1e-4
GN_DIST_EPS: float = 1e-6

# Control
CONTROL_STEP: float = 1.0
CONTROL_HEADING_STEP_DEG: float = 15.0

# Routing
ROUTE_THROTTLE_S: float = 0.12
WALKING_SPEED_UNITS_PER_MIN: float = 60.0

# Facility queries
BEACON_QUERY_RANGE: float = 30.0
