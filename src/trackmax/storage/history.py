# trackmax/storage/history.py
"""
Workout history and user preferences on top of a PersistentStore.

Also the `trackmax-history` command, which lists persisted sessions.
"""

from __future__ import annotations

import argparse
import datetime as dt
from pathlib import Path
from typing import Sequence

from trackmax.config import load_config
from trackmax.errors import StoreError
from trackmax.models import UserPreferences, WorkoutSession
from trackmax.storage.store import (
    PersistentStore,
    SqliteStore,
    USER_PREFERENCES_KEY,
    WORKOUT_SESSIONS_KEY,
)
from trackmax.util.formatting import format_distance, format_duration, format_pace
from trackmax.util.logging import warn


def load_history(store: PersistentStore) -> list[WorkoutSession]:
    """Persisted sessions, oldest first. Unreadable records are skipped."""
    raw = store.load(WORKOUT_SESSIONS_KEY)
    if raw is None:
        return []
    if not isinstance(raw, list):
        warn(f"Ignoring malformed workout history (expected a list, got {type(raw).__name__})")
        return []

    sessions: list[WorkoutSession] = []
    for item in raw:
        try:
            sessions.append(WorkoutSession.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            warn(f"Skipping unreadable session record: {e}")
    return sessions


def save_history(store: PersistentStore, sessions: Sequence[WorkoutSession]) -> bool:
    return store.save(WORKOUT_SESSIONS_KEY, [s.to_dict() for s in sessions])


def append_session(store: PersistentStore, session: WorkoutSession) -> bool:
    """
    Append one finalized session to the persisted history.

    Stored records are written back as they were read, including ones
    load_history() skips. If the history cannot be read, or is not a list,
    nothing is written and False is returned.
    """
    try:
        raw = store.read(WORKOUT_SESSIONS_KEY)
    except StoreError as e:
        warn(f"Workout history unreadable, session {session.id} not appended: {e}")
        return False

    if raw is None:
        raw = []
    elif not isinstance(raw, list):
        warn(f"Workout history is a {type(raw).__name__}, not a list; leaving it untouched")
        return False

    return store.save(WORKOUT_SESSIONS_KEY, raw + [session.to_dict()])


def load_preferences(
    store: PersistentStore, default: UserPreferences | None = None
) -> UserPreferences:
    raw = store.load(USER_PREFERENCES_KEY)
    if not isinstance(raw, dict):
        return default or UserPreferences()
    return UserPreferences.from_dict(raw)


def save_preferences(store: PersistentStore, prefs: UserPreferences) -> bool:
    return store.save(USER_PREFERENCES_KEY, prefs.to_dict())


def print_history(sessions: Sequence[WorkoutSession], *, units: str = "km") -> None:
    if not sessions:
        print("No saved workouts.")
        return
    for s in sessions:
        started = dt.datetime.fromtimestamp(s.start_time / 1000.0).astimezone()
        print(
            f"{s.id}  {started.isoformat(sep=' ', timespec='seconds')}  "
            f"{format_duration(s.duration)}  "
            f"{format_distance(s.distance, units)}  "
            f"{format_pace(s.avg_pace, units)}  "
            f"{len(s.route)} pts"
        )


def main() -> int:
    ap = argparse.ArgumentParser(description="trackmax: list saved workouts.")
    ap.add_argument("--db", default=None,
                    help="SQLite DB path (default: from trackmax config)")
    args = ap.parse_args()

    cfg = load_config()
    db_path = Path(args.db).expanduser() if args.db else cfg.paths.sqlite_path

    store = SqliteStore(db_path, key_prefix=cfg.tracking.key_prefix)
    prefs = load_preferences(store, cfg.preferences)
    print_history(load_history(store), units=prefs.units)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
