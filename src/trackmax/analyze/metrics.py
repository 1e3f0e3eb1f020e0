# trackmax/analyze/metrics.py
"""
Route metrics for trackmax

Reduces an ordered route (sequence of LocationFix) into distance, average
pace, average speed and maximum speed.
"""

from __future__ import annotations

from typing import Optional, Sequence

from trackmax.analyze.geo import distance_m
from trackmax.models import LocationFix, Metrics


def segment_distances_m(route: Sequence[LocationFix]) -> list[float]:
    """Geodesic distance (m) of each consecutive pair of fixes."""
    return [distance_m(p0, p1) for p0, p1 in zip(route, route[1:])]


def route_duration_s(route: Sequence[LocationFix]) -> float:
    """Seconds between first and last fix; 0 for fewer than two fixes."""
    if len(route) < 2:
        return 0.0
    return (route[-1].timestamp - route[0].timestamp) / 1000.0


def compute_step_metrics(route: Sequence[LocationFix]):
    """Return per-segment dt (s), distance (m), speed (m/s).

    Segments whose time step is not positive are skipped.
    """
    dts = []
    ds = []
    vs = []

    for p0, p1 in zip(route, route[1:]):
        dt_s = (p1.timestamp - p0.timestamp) / 1000.0
        if dt_s <= 0:
            continue

        d_m = distance_m(p0, p1)
        v = d_m / dt_s

        dts.append(dt_s)
        ds.append(d_m)
        vs.append(v)

    return dts, ds, vs


def calculate_metrics(
    route: Sequence[LocationFix], duration_s: Optional[float] = None
) -> Metrics:
    """
    Summarize a route.

    - distance: sum of pairwise geodesic distances (m)
    - avg_speed: distance / duration, 0 when duration is not positive
    - avg_pace: seconds per kilometer, 0 when distance is 0
    - max_speed: highest reported speed, absent speeds counting as 0
      (never below 0)

    The duration is the span between first and last fix unless `duration_s`
    is given (the tracker passes the session's elapsed time). Timestamps are
    not checked for ordering; an out-of-order route yields a meaningless
    duration but never raises.
    """
    max_speed = max((p.speed or 0.0 for p in route), default=0.0)
    max_speed = max(max_speed, 0.0)
    if len(route) < 2:
        return Metrics(max_speed=max_speed)

    dist = sum(segment_distances_m(route))
    if duration_s is None:
        duration_s = route_duration_s(route)

    avg_speed = dist / duration_s if duration_s > 0 else 0.0
    avg_pace = duration_s / (dist / 1000.0) if dist > 0 else 0.0

    return Metrics(
        distance=dist,
        avg_pace=avg_pace,
        avg_speed=avg_speed,
        max_speed=max_speed,
    )
