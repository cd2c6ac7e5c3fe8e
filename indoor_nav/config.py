from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .constants import (
    CONTROL_HEADING_STEP_DEG,
    CONTROL_STEP,
    GN_CONVERGE_TOL,
    GN_DET_EPS,
    GN_DIST_EPS,
    GN_ITERATIONS,
    RANGE_NOISE_STD,
    RANGE_SCALE,
    ROUTE_THROTTLE_S,
    WALKING_SPEED_UNITS_PER_MIN,
)


@dataclass
class RangingConfig:
    noise_std: float = RANGE_NOISE_STD
    max_beacons: Optional[int] = None  # None keeps every beacon in range
    range_scale: float = RANGE_SCALE

    def __post_init__(self) -> None:
        assert self.noise_std >= 0.0, "noise_std must be >= 0"
        assert self.range_scale > 0.0, "range_scale must be > 0"
        if self.max_beacons is not None:
            assert self.max_beacons > 0, "max_beacons must be > 0"


@dataclass
class EstimatorConfig:
    iterations: int = GN_ITERATIONS
    det_eps: float = GN_DET_EPS
    converge_tol: float = GN_CONVERGE_TOL
    dist_eps: float = GN_DIST_EPS

    def __post_init__(self) -> None:
        assert self.iterations > 0, "iterations must be > 0"
        for name in ("det_eps", "converge_tol", "dist_eps"):
            assert getattr(self, name) > 0.0, f"{name} must be > 0"


@dataclass
class ControlConfig:
    step: float = CONTROL_STEP
    heading_step_deg: float = CONTROL_HEADING_STEP_DEG

    def __post_init__(self) -> None:
        assert self.step > 0.0, "step must be > 0"
        assert 0.0 < self.heading_step_deg <= 180.0, "heading_step_deg in (0,180]"


@dataclass
class RouteConfig:
    throttle_s: float = ROUTE_THROTTLE_S
    walking_speed: float = WALKING_SPEED_UNITS_PER_MIN  # facility units per minute
    use_components: bool = True

    def __post_init__(self) -> None:
        assert self.throttle_s >= 0.0, "throttle_s must be >= 0"
        assert self.walking_speed > 0.0, "walking_speed must be > 0"


@dataclass
class EngineConfig:
    ranging: RangingConfig = field(default_factory=RangingConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    control: ControlConfig = field(default_factory=ControlConfig)
    route: RouteConfig = field(default_factory=RouteConfig)
    fallback_to_true_pose: bool = True
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any] | None) -> "EngineConfig":
        d = cfg or {}
        # Allow nested sections or top-level overrides
        ranging = dict(d.get("ranging") or d.get("uwb") or {})
        for key in ("noise_std", "max_beacons", "range_scale"):
            if key in d:
                ranging[key] = d[key]
        estimator = dict(d.get("estimator") or d.get("trilateration") or {})
        control = dict(d.get("control") or {})
        route = dict(d.get("route") or d.get("routing") or {})
        if "throttle_s" in d:
            route["throttle_s"] = d["throttle_s"]
        seed = d.get("seed")
        return cls(
            ranging=RangingConfig(**ranging),
            estimator=EstimatorConfig(**estimator),
            control=ControlConfig(**control),
            route=RouteConfig(**route),
            fallback_to_true_pose=bool(d.get("fallback_to_true_pose", True)),
            seed=None if seed is None else int(seed),
        )
