"""Facility model: bounds, obstacle sections, beacons and point features.

The model is read-only for the whole session. Construction validates the
input and raises FacilityModelError on anything malformed.

Accepted input keys (canonical first, store-layout aliases second):
- bounds {width, height}            | map {width, height}
- sections[].obstacles[].corners    | sections[].aisles[].coordinates
- beacons[] {id, position, max_range} | uwb_anchors[] {id, coordinates, range}
- entrances / checkouts / services  {id, name, position|coordinates, type}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import BEACON_DEFAULT_RANGE, BEACON_QUERY_RANGE
from .types import Beacon, Point2D
from .utils.config import load_config_dict

logger = logging.getLogger(__name__)


class FacilityModelError(ValueError):
    """Raised when a facility layout cannot be turned into a valid model."""


@dataclass(frozen=True)
class FacilityBounds:
    width: int
    height: int

    def contains(self, p: Point2D) -> bool:
        return 0.0 <= p.x < self.width and 0.0 <= p.y < self.height

    def clamp(self, p: Point2D) -> Point2D:
        x = min(max(float(p.x), 0.0), float(self.width - 1))
        y = min(max(float(p.y), 0.0), float(self.height - 1))
        return Point2D(x, y)


@dataclass(frozen=True)
class ObstacleRegion:
    """Axis-aligned rectangle given by four (unsorted) corners."""

    id: str
    corners: Tuple[Point2D, ...]
    section_id: str = ""

    def bounding_box(self) -> Tuple[float, float, float, float]:
        xs = [c.x for c in self.corners]
        ys = [c.y for c in self.corners]
        return min(xs), min(ys), max(xs), max(ys)


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    obstacles: Tuple[ObstacleRegion, ...]
    color: str = ""


@dataclass(frozen=True)
class PointFeature:
    """Entrance, checkout or service point."""

    id: str
    name: str
    position: Point2D
    kind: str = ""


def _point(raw: Any, what: str) -> Point2D:
    if isinstance(raw, Mapping):
        try:
            return Point2D(float(raw["x"]), float(raw["y"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise FacilityModelError(f"{what}: expected {{x, y}}, got {raw!r}") from exc
    if isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) >= 2:
        try:
            return Point2D(float(raw[0]), float(raw[1]))
        except (TypeError, ValueError) as exc:
            raise FacilityModelError(f"{what}: non-numeric coordinates {raw!r}") from exc
    raise FacilityModelError(f"{what}: expected a 2D point, got {raw!r}")


def _entry(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise FacilityModelError(f"{what}: expected a mapping, got {raw!r}")
    return raw


def _position_of(entry: Mapping[str, Any], what: str) -> Point2D:
    raw = entry.get("position", entry.get("coordinates"))
    if raw is None:
        raise FacilityModelError(f"{what}: missing position")
    return _point(raw, what)


def _parse_bounds(d: Mapping[str, Any]) -> FacilityBounds:
    raw = d.get("bounds") or d.get("map")
    if not isinstance(raw, Mapping):
        raise FacilityModelError("facility layout is missing bounds {width, height}")
    try:
        width = int(raw["width"])
        height = int(raw["height"])
    except (KeyError, TypeError, ValueError) as exc:
        raise FacilityModelError(f"invalid bounds {raw!r}") from exc
    if width <= 0 or height <= 0:
        raise FacilityModelError(f"bounds must be positive, got {width}x{height}")
    return FacilityBounds(width, height)


def _parse_obstacle(raw: Any, section_id: str, idx: int) -> ObstacleRegion:
    raw = _entry(raw, f"section {section_id!r} obstacle #{idx}")
    oid = str(raw.get("id", f"{section_id}-{idx}"))
    corners_raw = raw.get("corners", raw.get("coordinates"))
    if not isinstance(corners_raw, Sequence) or len(corners_raw) != 4:
        raise FacilityModelError(f"obstacle {oid!r}: expected 4 corner points")
    corners = tuple(_point(c, f"obstacle {oid!r}") for c in corners_raw)
    region = ObstacleRegion(oid, corners, section_id)
    x0, y0, x1, y1 = region.bounding_box()
    if x1 - x0 <= 0.0 or y1 - y0 <= 0.0:
        raise FacilityModelError(f"obstacle {oid!r} has zero area")
    return region


def _parse_sections(d: Mapping[str, Any]) -> Tuple[Section, ...]:
    sections: List[Section] = []
    for s_idx, raw in enumerate(d.get("sections") or []):
        raw = _entry(raw, f"section #{s_idx}")
        sid = str(raw.get("id", f"section-{s_idx}"))
        obstacles_raw = raw.get("obstacles")
        if obstacles_raw is None:
            obstacles_raw = raw.get("aisles") or []
        obstacles = tuple(_parse_obstacle(o, sid, i) for i, o in enumerate(obstacles_raw))
        sections.append(
            Section(
                id=sid,
                name=str(raw.get("name", sid)),
                obstacles=obstacles,
                color=str(raw.get("color", "")),
            )
        )
    return tuple(sections)


def _parse_beacons(d: Mapping[str, Any]) -> Tuple[Beacon, ...]:
    raw_list = d.get("beacons")
    if raw_list is None:
        raw_list = d.get("uwb_anchors")
    if not raw_list:
        raise FacilityModelError("facility layout has no beacons")
    beacons: List[Beacon] = []
    seen: set[str] = set()
    for i, raw in enumerate(raw_list):
        raw = _entry(raw, f"beacon #{i}")
        bid = str(raw.get("id", f"beacon-{i}"))
        if bid in seen:
            raise FacilityModelError(f"duplicate beacon id {bid!r}")
        seen.add(bid)
        max_range = raw.get("max_range", raw.get("range"))
        try:
            max_range = BEACON_DEFAULT_RANGE if max_range is None else float(max_range)
        except (TypeError, ValueError) as exc:
            raise FacilityModelError(f"beacon {bid!r}: non-numeric range {max_range!r}") from exc
        if max_range <= 0.0:
            raise FacilityModelError(f"beacon {bid!r}: range must be > 0")
        beacons.append(Beacon(bid, _position_of(raw, f"beacon {bid!r}"), max_range))
    return tuple(beacons)


def _parse_features(d: Mapping[str, Any], key: str) -> Tuple[PointFeature, ...]:
    out: List[PointFeature] = []
    for i, raw in enumerate(d.get(key) or []):
        raw = _entry(raw, f"{key} #{i}")
        fid = str(raw.get("id", f"{key}-{i}"))
        out.append(
            PointFeature(
                id=fid,
                name=str(raw.get("name", fid)),
                position=_position_of(raw, f"{key} {fid!r}"),
                kind=str(raw.get("type", "")),
            )
        )
    return tuple(out)


@dataclass(frozen=True)
class FacilityModel:
    bounds: FacilityBounds
    sections: Tuple[Section, ...]
    beacons: Tuple[Beacon, ...]
    entrances: Tuple[PointFeature, ...] = ()
    checkouts: Tuple[PointFeature, ...] = ()
    services: Tuple[PointFeature, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "FacilityModel":
        if not isinstance(data, Mapping):
            raise FacilityModelError(f"facility layout must be a mapping, got {type(data)}")
        model = cls(
            bounds=_parse_bounds(data),
            sections=_parse_sections(data),
            beacons=_parse_beacons(data),
            entrances=_parse_features(data, "entrances"),
            checkouts=_parse_features(data, "checkouts"),
            services=_parse_features(data, "services"),
        )
        logger.debug(
            "Loaded facility %dx%d: %d sections, %d obstacles, %d beacons",
            model.bounds.width,
            model.bounds.height,
            len(model.sections),
            len(model.obstacles),
            len(model.beacons),
        )
        return model

    @property
    def obstacles(self) -> List[ObstacleRegion]:
        return [o for s in self.sections for o in s.obstacles]

    def beacons_in_range(self, position: Point2D, max_range: float = BEACON_QUERY_RANGE) -> List[Beacon]:
        """Beacons whose true distance to position is within max_range."""
        return [b for b in self.beacons if b.position.distance_to(position) <= max_range]

    def nearest_entrance(self, position: Point2D) -> Optional[Tuple[PointFeature, float]]:
        return _nearest(self.entrances, position)

    def nearest_checkout(self, position: Point2D) -> Optional[Tuple[PointFeature, float]]:
        return _nearest(self.checkouts, position)

    def points_of_interest(self) -> List[PointFeature]:
        return [*self.entrances, *self.checkouts, *self.services]


def _nearest(features: Iterable[PointFeature], position: Point2D) -> Optional[Tuple[PointFeature, float]]:
    best: Optional[Tuple[PointFeature, float]] = None
    for f in features:
        d = f.position.distance_to(position)
        if best is None or d < best[1]:
            best = (f, d)
    return best


def load_facility(path: str) -> FacilityModel:
    """Load and validate a facility layout from a YAML file."""
    data: Dict[str, Any] = load_config_dict(path)
    model = FacilityModel.from_dict(data)
    logger.info("Facility layout loaded from %s", path)
    return model
