#!/usr/bin/env python3
"""
trackmax: summarize recorded GPX routes (distance, pace, speed).
"""

from __future__ import annotations

import argparse
from pathlib import Path

from trackmax.analyze.metrics import calculate_metrics, compute_step_metrics, route_duration_s
from trackmax.config import load_config
from trackmax.errors import InvalidGpxError
from trackmax.formats.gpx import read_gpx_fixes
from trackmax.util.formatting import format_distance, format_duration, format_pace, format_speed
from trackmax.util.logging import warn


def analyze_route(gpx_path: Path) -> dict:
    fixes = read_gpx_fixes(gpx_path)

    if len(fixes) < 2:
        m = calculate_metrics(fixes)
        return {"points": len(fixes), "segments": 0, "max_speed_mps": m.max_speed}

    _, _, vs = compute_step_metrics(fixes)
    m = calculate_metrics(fixes)

    return {
        "points": len(fixes),
        "segments": len(vs),
        "distance_m": m.distance,
        "duration_s": route_duration_s(fixes),
        "avg_speed_mps": m.avg_speed,
        "avg_pace_s_per_km": m.avg_pace,
        # Sensor speed when the file carries it, else the fastest segment
        "max_speed_mps": m.max_speed or (max(vs) if vs else 0.0),
    }


def print_report(path: Path, stats: dict, *, tsv: bool, units: str = "km") -> None:
    if tsv:
        print(
            f"{path}\t"
            f"{stats.get('points', 0)}\t"
            f"{stats.get('segments', 0)}\t"
            f"{stats.get('distance_m', 0.0):.2f}\t"
            f"{stats.get('duration_s', 0.0):.1f}\t"
            f"{stats.get('avg_speed_mps', 0.0):.3f}\t"
            f"{stats.get('avg_pace_s_per_km', 0.0):.1f}\t"
            f"{stats.get('max_speed_mps', 0.0):.3f}"
        )
    else:
        print(f"\n{path}")
        print(f"  points        : {stats.get('points', 0)}")
        print(f"  segments      : {stats.get('segments', 0)}")
        print(f"  distance      : {format_distance(stats.get('distance_m', 0.0), units)}")
        print(f"  duration      : {format_duration(stats.get('duration_s', 0.0))}")
        print(f"  avg speed     : {format_speed(stats.get('avg_speed_mps', 0.0), units)}")
        print(f"  avg pace      : {format_pace(stats.get('avg_pace_s_per_km', 0.0), units)}")
        print(f"  max speed     : {format_speed(stats.get('max_speed_mps', 0.0), units)}")


def main() -> int:
    ap = argparse.ArgumentParser(description="trackmax: analyze GPX route(s).")
    ap.add_argument("gpx", nargs="+", help="One or more GPX files.")
    ap.add_argument("--tsv", action="store_true",
                    help="Print tab-separated output (good for piping).")
    ap.add_argument("--units", choices=("km", "mi"), default=None,
                    help="Display units (default: from trackmax config).")
    args = ap.parse_args()

    cfg = load_config()
    units = args.units or cfg.preferences.units

    if args.tsv:
        print("file\tpoints\tsegments\tdistance_m\tduration_s\tavg_speed_mps\tavg_pace_s_per_km\tmax_speed_mps")

    rc = 0
    for p in args.gpx:
        path = Path(p).expanduser()
        if not path.is_file():
            print(f"Skipping (not a file): {path}")
            continue
        try:
            stats = analyze_route(path)
        except InvalidGpxError as e:
            warn(f"Cannot analyze {path}: {e}")
            rc = 1
            continue
        print_report(path, stats, tsv=args.tsv, units=units)

    return rc


if __name__ == "__main__":
    raise SystemExit(main())
