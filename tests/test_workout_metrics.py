import pytest

from trackmax.analyze.geo import distance
from trackmax.analyze.metrics import (
    calculate_metrics,
    compute_step_metrics,
    route_duration_s,
    segment_distances_m,
)
from trackmax.models import LocationFix, Metrics


def test_empty_route_is_all_zero():
    assert calculate_metrics([]) == Metrics(distance=0, avg_pace=0, avg_speed=0, max_speed=0)


def test_single_point_keeps_its_speed(make_fix):
    m = calculate_metrics([make_fix(1_000, speed=4.2)])
    assert m == Metrics(distance=0, avg_pace=0, avg_speed=0, max_speed=4.2)


def test_single_point_without_speed(make_fix):
    m = calculate_metrics([make_fix(1_000, speed=None)])
    assert m.max_speed == 0


def test_multi_point_uses_geodesic_distance(make_fix):
    route = [
        make_fix(0, speed=5, latitude=45.000, longitude=7.0),
        make_fix(10_000, speed=6, latitude=45.001, longitude=7.0),
        make_fix(20_000, speed=4, latitude=45.002, longitude=7.0),
    ]
    m = calculate_metrics(route)

    expected = (distance(route[0], route[1]) + distance(route[1], route[2])) * 1000
    assert m.distance == pytest.approx(expected)
    assert m.avg_speed == pytest.approx(expected / 20)
    assert m.avg_pace == pytest.approx(20 / (expected / 1000))
    assert m.max_speed == 6


def test_null_speeds_never_raise_max_speed(make_fix):
    route = [make_fix(0, speed=None), make_fix(1_000, speed=3.0), make_fix(2_000, speed=None)]
    assert calculate_metrics(route).max_speed == 3.0


def test_all_null_speeds(make_fix):
    route = [make_fix(0, speed=None), make_fix(1_000, speed=None)]
    assert calculate_metrics(route).max_speed == 0


def test_stationary_route_has_no_pace(make_fix):
    route = [make_fix(0), make_fix(5_000), make_fix(10_000)]
    m = calculate_metrics(route)
    assert m.distance == 0
    assert m.avg_pace == 0
    assert m.avg_speed == 0


def test_zero_duration_gives_zero_speed(make_fix):
    route = [make_fix(1_000, latitude=45.0), make_fix(1_000, latitude=45.001)]
    m = calculate_metrics(route)
    assert m.distance > 0
    assert m.avg_speed == 0
    assert m.avg_pace == 0


def test_out_of_order_timestamps_do_not_crash(make_fix):
    route = [make_fix(10_000, latitude=45.0), make_fix(0, latitude=45.001)]
    m = calculate_metrics(route)
    assert route_duration_s(route) == -10.0
    assert m.avg_speed == 0
    assert m.distance > 0


def test_step_metrics_skip_non_positive_dt():
    route = [
        LocationFix(45.000, 7.0, 0),
        LocationFix(45.001, 7.0, 0),
        LocationFix(45.002, 7.0, 10_000),
    ]
    dts, ds, vs = compute_step_metrics(route)
    assert dts == [10.0]
    assert len(ds) == len(vs) == 1
    assert vs[0] == pytest.approx(ds[0] / 10.0)
    assert len(segment_distances_m(route)) == 2
