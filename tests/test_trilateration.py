import numpy as np

from indoor_nav.config import EstimatorConfig
from indoor_nav.estimation.trilateration import estimate_position, simulate_and_estimate
from indoor_nav.sim.ranging import RangeSimulator
from indoor_nav.types import Beacon, Point2D, RangeReading


def exact_readings(p, anchors):
    return [
        RangeReading(f"b{i}", float(np.hypot(p[0] - ax, p[1] - ay)), Point2D(ax, ay))
        for i, (ax, ay) in enumerate(anchors)
    ]


def test_three_beacons_noiseless_converges():
    anchors = [(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)]
    result = estimate_position(exact_readings((3.0, 4.0), anchors))
    assert result is not None
    assert abs(result.position.x - 3.0) < 1e-3
    assert abs(result.position.y - 4.0) < 1e-3
    assert result.converged
    assert not result.degenerate
    assert result.rms_residual < 1e-3


def test_four_corner_beacons_various_points():
    anchors = [(0.0, 0.0), (20.0, 0.0), (0.0, 20.0), (20.0, 20.0)]
    for p in [(7.5, 12.25), (3.0, 16.0), (15.0, 15.0), (16.0, 3.0)]:
        result = estimate_position(exact_readings(p, anchors))
        assert abs(result.position.x - p[0]) < 1e-3
        assert abs(result.position.y - p[1]) < 1e-3


def test_initial_guess_is_used():
    anchors = [(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)]
    readings = exact_readings((6.0, 2.0), anchors)
    result = estimate_position(readings, initial_guess=Point2D(6.0, 2.0))
    # Already at the solution: first step is negligible
    assert result.iterations == 1
    assert result.converged


def test_fewer_than_three_readings_fails():
    anchors = [(0.0, 0.0), (10.0, 0.0)]
    assert estimate_position(exact_readings((3.0, 4.0), anchors)) is None
    assert estimate_position([]) is None


def test_collinear_beacons_return_partial_estimate():
    anchors = [(0.0, 0.0), (5.0, 0.0), (10.0, 0.0)]
    result = estimate_position(exact_readings((4.0, 3.0), anchors))
    assert result is not None
    assert result.degenerate
    assert not result.converged
    # Centroid start sits on the line, so the first normal matrix is singular
    assert result.position == Point2D(5.0, 0.0)


def test_iteration_cap_respected():
    anchors = [(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)]
    cfg = EstimatorConfig(iterations=1)
    result = estimate_position(exact_readings((8.0, 8.0), anchors), config=cfg)
    assert result.iterations == 1


def test_noisy_estimate_is_close():
    beacons = [
        Beacon("a", Point2D(0.0, 0.0), 30.0),
        Beacon("b", Point2D(20.0, 0.0), 30.0),
        Beacon("c", Point2D(0.0, 20.0), 30.0),
        Beacon("d", Point2D(20.0, 20.0), 30.0),
    ]
    sim = RangeSimulator(noise_std=0.1, rng=np.random.default_rng(5))
    readings, result = simulate_and_estimate(sim, beacons, Point2D(8.0, 11.0))
    assert len(readings) == 4
    assert result is not None
    assert np.hypot(result.position.x - 8.0, result.position.y - 11.0) < 1.0
