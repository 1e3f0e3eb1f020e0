# trackmax/analyze/geo.py
"""
Great-circle distance on a spherical earth.
"""

from __future__ import annotations

from typing import Any

from haversine import haversine, Unit

EARTH_RADIUS_KM = 6371.0


def _latlon(p: Any) -> tuple[float, float]:
    if isinstance(p, tuple):
        return p[0], p[1]
    return p.latitude, p.longitude


def distance(a: Any, b: Any) -> float:
    """
    Haversine distance in kilometers between two coordinates.

    `a` and `b` are anything with `latitude`/`longitude` attributes
    (e.g. LocationFix) or plain (lat, lon) tuples in degrees.

    Coordinates are not range-checked; NaN inputs give NaN.
    """
    # haversine's own kilometer unit uses the IUGG mean radius (6371.0088 km),
    # so take the central angle and scale by our radius.
    angle = haversine(_latlon(a), _latlon(b), unit=Unit.RADIANS, check=False)
    return EARTH_RADIUS_KM * angle


def distance_m(a: Any, b: Any) -> float:
    """Same as distance(), in meters."""
    return distance(a, b) * 1000.0
