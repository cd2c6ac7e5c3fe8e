import numpy as np
import pytest

from indoor_nav import EngineConfig, FacilityModel, NavigationEngine, Point2D, Target
from indoor_nav.planning.astar import path_length


def make_facility(obstacles=(), beacons=None, width=20, height=20):
    if beacons is None:
        beacons = [
            {"id": "b1", "position": [0, 0], "max_range": 30},
            {"id": "b2", "position": [width, 0], "max_range": 30},
            {"id": "b3", "position": [0, height], "max_range": 30},
            {"id": "b4", "position": [width, height], "max_range": 30},
        ]
    return FacilityModel.from_dict(
        {
            "bounds": {"width": width, "height": height},
            "sections": [{"id": "s", "name": "s", "obstacles": list(obstacles)}],
            "beacons": beacons,
        }
    )


def make_cfgs(**kwargs):
    return EngineConfig.from_dict({"noise_std": 0.0, **kwargs})


def test_noiseless_estimate_matches_true_pose():
    engine = NavigationEngine(make_facility(), make_cfgs(), start=Point2D(3.0, 4.0))
    assert engine.estimate_ok
    assert len(engine.readings) == 4
    est = engine.estimated_pose.position
    assert est.x == pytest.approx(3.0, abs=1e-3)
    assert est.y == pytest.approx(4.0, abs=1e-3)
    assert engine.estimated_pose.heading_deg == engine.true_pose.heading_deg


def test_control_events_move_rotate_and_clamp():
    engine = NavigationEngine(make_facility(), make_cfgs(), start=Point2D(0.0, 0.0))
    pose = engine.on_control_event("up")
    assert pose.position == Point2D(0.0, 0.0)
    assert pose.heading_deg == 270.0
    pose = engine.on_control_event("right")
    assert pose.position == Point2D(1.0, 0.0)
    assert pose.heading_deg == 0.0
    pose = engine.on_control_event("rotate_left")
    assert pose.heading_deg == 345.0
    pose = engine.on_control_event("down")
    assert pose.position == Point2D(1.0, 1.0)
    assert pose.heading_deg == 90.0
    pose = engine.on_control_event("rotate_right")
    assert pose.heading_deg == 105.0
    assert pose.position == Point2D(1.0, 1.0)
    with pytest.raises(ValueError):
        engine.on_control_event("jump")


def test_replan_is_throttled_and_coalesced():
    engine = NavigationEngine(make_facility(), make_cfgs(), start=Point2D(1.0, 1.0))
    engine.set_targets([Target("t", Point2D(15.0, 1.0))])
    assert engine.on_tick(now=0.0) is True
    assert engine.route.cells[0] == (1, 1)
    assert engine.route_version == 1

    for now in (0.01, 0.02, 0.03):
        engine.on_control_event("right")
        assert engine.on_tick(now=now) is False
    assert engine.route.cells[0] == (1, 1)

    # Window elapsed: one re-plan from the latest cursor
    assert engine.on_tick(now=0.12) is True
    assert engine.route.cells[0] == (4, 1)
    assert engine.route_version == 2
    assert engine.on_tick(now=0.5) is False


def test_clock_drives_throttle_when_now_omitted():
    t = [0.0]
    engine = NavigationEngine(make_facility(), make_cfgs(), start=Point2D(1.0, 1.0), clock=lambda: t[0])
    engine.add_target(Target("t", Point2D(10.0, 10.0)))
    assert engine.on_tick() is True
    engine.on_control_event("down")
    t[0] = 0.05
    assert engine.on_tick() is False
    t[0] = 0.2
    assert engine.on_tick() is True


def test_estimate_kept_when_beacons_drop_out():
    beacons = [
        {"id": "b1", "position": [0, 0], "max_range": 8},
        {"id": "b2", "position": [6, 0], "max_range": 8},
        {"id": "b3", "position": [0, 6], "max_range": 8},
    ]
    facility = make_facility(beacons=beacons, width=30, height=10)
    engine = NavigationEngine(facility, make_cfgs(), start=Point2D(2.0, 2.0))
    for _ in range(4):
        engine.on_control_event("right")
    assert engine.estimate_ok
    last = engine.estimated_pose.position

    for _ in range(6):
        engine.on_control_event("right")
    assert engine.true_pose.position == Point2D(12.0, 2.0)
    assert not engine.estimate_ok
    assert len(engine.readings) < 3
    assert engine.estimated_pose.position == last


def test_no_estimate_without_fallback():
    beacons = [
        {"id": "b1", "position": [0, 0], "max_range": 8},
        {"id": "b2", "position": [6, 0], "max_range": 8},
        {"id": "b3", "position": [0, 6], "max_range": 8},
    ]
    facility = make_facility(beacons=beacons, width=30, height=10)
    start = Point2D(20.0, 5.0)

    engine = NavigationEngine(facility, make_cfgs(fallback_to_true_pose=False), start=start)
    assert engine.estimated_pose is None
    assert engine.cursor_position == start

    engine = NavigationEngine(facility, make_cfgs(), start=start)
    assert engine.estimated_pose == engine.true_pose


def test_fallback_follows_true_pose_until_first_estimate():
    beacons = [
        {"id": "b1", "position": [0, 0], "max_range": 8},
        {"id": "b2", "position": [6, 0], "max_range": 8},
        {"id": "b3", "position": [0, 6], "max_range": 8},
    ]
    facility = make_facility(beacons=beacons, width=30, height=10)
    engine = NavigationEngine(facility, make_cfgs(), start=Point2D(20.0, 5.0))
    engine.set_targets([Target("t", Point2D(28.0, 5.0))])
    assert engine.on_tick(now=0.0) is True
    assert engine.route.cells[0] == (20, 5)

    for _ in range(5):
        engine.on_control_event("right")
    assert engine.on_tick(now=1.0) is True
    assert not engine.estimate_ok
    assert engine.true_pose.position == Point2D(25.0, 5.0)
    assert engine.cursor_position == engine.true_pose.position
    assert engine.route.cells[0] == (25, 5)

    # Without fallback the cursor stays on the true pose but no estimate exists
    engine = NavigationEngine(facility, make_cfgs(fallback_to_true_pose=False), start=Point2D(20.0, 5.0))
    engine.on_control_event("right")
    assert engine.estimated_pose is None
    assert engine.cursor_position == Point2D(21.0, 5.0)


def test_route_changed_callback():
    engine = NavigationEngine(make_facility(), make_cfgs(), start=Point2D(1.0, 1.0))
    seen = []
    engine.on_route_changed = seen.append
    engine.set_targets([Target("a", Point2D(5.0, 1.0))])
    engine.on_tick(now=0.0)
    assert len(seen) == 1 and seen[0] is engine.route

    engine.clear_targets()
    engine.on_tick(now=1.0)
    assert seen[-1] is None
    assert engine.route is None


def test_target_management():
    engine = NavigationEngine(make_facility(), make_cfgs())
    engine.add_target(Target("far", Point2D(25.0, -3.0), "Far"))
    assert engine.targets[0].position == Point2D(19.0, 0.0)
    assert engine.targets[0].label == "Far"
    assert engine.remove_target("missing") is False
    assert engine.remove_target("far") is True
    assert engine.targets == []


def test_seeded_engines_agree():
    a = NavigationEngine(make_facility(), EngineConfig.from_dict({"seed": 3}), start=Point2D(5.0, 5.0))
    b = NavigationEngine(make_facility(), EngineConfig.from_dict({"seed": 3}), start=Point2D(5.0, 5.0))
    for event in ("right", "down", "right"):
        a.on_control_event(event)
        b.on_control_event(event)
    assert a.readings == b.readings
    assert a.estimated_pose == b.estimated_pose


def test_end_to_end_route_around_obstacle():
    obstacle = {"id": "o1", "corners": [[5, 5], [10, 5], [10, 10], [5, 10]]}
    engine = NavigationEngine(make_facility([obstacle]), make_cfgs(), start=Point2D(0.0, 0.0))
    engine.set_targets([Target("goal", Point2D(15.0, 15.0))])
    assert engine.on_tick(now=0.0) is True

    route = engine.route
    cells = list(route.cells)
    assert cells[0] == (0, 0)
    assert cells[-1] == (15, 15)
    assert path_length(cells) == 30
    assert route.total_distance == 30.0
    assert all(engine.grid[c.y, c.x] for c in cells)
    assert not np.any(engine.grid[5:10, 5:10])
