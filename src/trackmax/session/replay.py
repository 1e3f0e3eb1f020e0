#!/usr/bin/env python3
"""
trackmax: replay a recorded GPX workout through the session tracker.

The recording drives both the fixes and the clock, so the finalized session
matches what a live tracker would have produced. The result is saved to the
workout history unless --discard is given.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from trackmax.config import load_config
from trackmax.errors import InvalidGpxError
from trackmax.feed.replay import ReplayLocationFeed
from trackmax.formats.gpx import write_session_gpx
from trackmax.models import WorkoutSession
from trackmax.session.tracker import SessionTracker
from trackmax.storage.history import load_preferences
from trackmax.storage.store import SqliteStore
from trackmax.util.formatting import format_distance, format_duration, format_pace, format_speed
from trackmax.util.logging import log, warn


def print_session(session: WorkoutSession, *, units: str = "km") -> None:
    print(f"\nsession {session.id} ({session.status.value})")
    print(f"  fixes         : {len(session.route)}")
    print(f"  duration      : {format_duration(session.duration)}")
    print(f"  distance      : {format_distance(session.distance, units)}")
    print(f"  avg speed     : {format_speed(session.avg_speed, units)}")
    print(f"  avg pace      : {format_pace(session.avg_pace, units)}")
    print(f"  max speed     : {format_speed(session.max_speed, units)}")


def main() -> int:
    ap = argparse.ArgumentParser(description="trackmax: replay a GPX workout and save it.")
    ap.add_argument("gpx", help="Recorded workout (GPX).")
    ap.add_argument("--discard", action="store_true",
                    help="Finish the session without saving it to history.")
    ap.add_argument("--db", default=None,
                    help="SQLite DB path (default: from trackmax config)")
    ap.add_argument("--export-gpx", default=None,
                    help="Also write the finalized route to this GPX path.")
    ap.add_argument("--realtime", action="store_true",
                    help="Sleep between fixes as in the recording.")
    ap.add_argument("--speedup", type=float, default=1.0,
                    help="Playback speed factor with --realtime (default: 1.0).")
    args = ap.parse_args()

    cfg = load_config()
    db_path = Path(args.db).expanduser() if args.db else cfg.paths.sqlite_path
    store = SqliteStore(db_path, key_prefix=cfg.tracking.key_prefix)
    prefs = load_preferences(store, cfg.preferences)

    try:
        feed = ReplayLocationFeed.from_gpx(Path(args.gpx).expanduser())
    except (InvalidGpxError, OSError) as e:
        warn(f"Cannot read {args.gpx}: {e}")
        return 1

    # Simulated time: no wall-clock ticker, the recording's timestamps drive duration.
    tracker = SessionTracker(feed, store, clock=feed.clock, tick_interval_s=None)
    loaded = tracker.hydrate()
    log(f"Loaded {loaded} saved workout(s) from {db_path}")

    if not tracker.start():
        return 1
    feed.play(realtime=args.realtime, speedup=args.speedup)
    session = tracker.stop(save=not args.discard)

    print_session(session, units=prefs.units)

    if args.export_gpx:
        out = Path(args.export_gpx).expanduser()
        write_session_gpx(session, out)
        log(f"Wrote {out}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
