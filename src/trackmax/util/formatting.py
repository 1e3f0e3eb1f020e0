# trackmax/util/formatting.py
"""
Display helpers for durations, distances, speeds and paces.
"""

from __future__ import annotations

import math
from typing import Optional

KM_M = 1000.0
MILE_M = 1609.34


def format_duration(seconds: int) -> str:
    """
    Convert total seconds -> 'HH:MM:SS'.
    Example: 3725 -> '01:02:05'. Hours are not wrapped (86400 -> '24:00:00').
    """
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_number(num: Optional[float], fraction_digits: int = 2) -> str:
    """Fixed-point formatting; 'N/A' for a missing value."""
    if num is None:
        return "N/A"
    return f"{num:.{fraction_digits}f}"


def _unit_m(units: str) -> float:
    if units == "mi":
        return MILE_M
    if units == "km":
        return KM_M
    raise ValueError(f"Unknown units: {units!r} (expected 'km' or 'mi')")


def format_distance(meters: float, units: str = "km") -> str:
    return f"{meters / _unit_m(units):.2f} {units}"


def format_speed(mps: Optional[float], units: str = "km") -> str:
    label = "mph" if units == "mi" else "km/h"
    if not mps or mps <= 0:
        return f"0.0 {label}"
    return f"{mps * 3600.0 / _unit_m(units):.1f} {label}"


def format_pace(sec_per_km: float, units: str = "km") -> str:
    """
    Pace as 'M:SS/km' (or '/mi'). Returns '--' when there is no pace yet.
    Example: 330 s/km -> '5:30/km'
    """
    if not sec_per_km or sec_per_km <= 0 or math.isinf(sec_per_km) or math.isnan(sec_per_km):
        return f"--/{units}"
    pace_sec = int(round(sec_per_km * _unit_m(units) / KM_M))
    minutes = pace_sec // 60
    seconds = pace_sec % 60
    return f"{minutes}:{seconds:02d}/{units}"
