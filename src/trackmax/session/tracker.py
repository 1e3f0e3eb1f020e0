# trackmax/session/tracker.py
"""
Workout session tracker

Owns the lifecycle of the one current workout:

    idle --start()--> active --stop(save)--> idle
                                   |
                                   +--> completed (saved) / discarded

While active, the session's route grows with every fix the feed delivers,
and its duration advances both on fixes and on a periodic tick so it keeps
moving when fixes are sparse.

All mutation happens under a single lock, so fixes (feed thread), ticks
(ticker thread) and start/stop (caller) apply one at a time. Once stop()
returns, no fix or tick can touch the finished session.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Callable, Optional

from trackmax.analyze.metrics import calculate_metrics
from trackmax.errors import LocationError
from trackmax.feed.location import LocationFeed, Subscription
from trackmax.models import LocationFix, Metrics, SessionStatus, WorkoutSession
from trackmax.storage.history import append_session, load_history
from trackmax.storage.store import PersistentStore
from trackmax.util.logging import log, now_ms, warn


class TrackerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class _ActiveSession:
    id: str
    start_time: int
    duration: int = 0
    route: list[LocationFix] = field(default_factory=list)

    def snapshot(self) -> WorkoutSession:
        return WorkoutSession(
            id=self.id,
            start_time=self.start_time,
            duration=self.duration,
            route=tuple(self.route),
            status=SessionStatus.ONGOING,
        )


class DurationTicker(threading.Thread):
    """Daemon thread calling `callback` every `interval_s` until cancelled."""

    def __init__(self, interval_s: float, callback: Callable[[], object]):
        super().__init__(name="trackmax-ticker", daemon=True)
        self.interval_s = interval_s
        self._callback = callback
        self._cancelled = threading.Event()

    def run(self) -> None:
        while not self._cancelled.wait(self.interval_s):
            self._callback()

    def cancel(self) -> None:
        self._cancelled.set()


class SessionTracker:
    """
    Args:
        feed: location source; started/stopped with the session.
        store: where saved sessions go. None keeps history in memory only.
        clock: returns "now" in epoch milliseconds.
        tick_interval_s: duration tick period; None or 0 disables the ticker
            (callers may then drive tick() themselves).
    """

    def __init__(
        self,
        feed: LocationFeed,
        store: Optional[PersistentStore] = None,
        *,
        clock: Callable[[], int] = now_ms,
        tick_interval_s: Optional[float] = 1.0,
    ):
        self.feed = feed
        self.store = store
        self.clock = clock
        self.tick_interval_s = tick_interval_s

        self._lock = threading.RLock()
        self._current: Optional[_ActiveSession] = None
        self._past: list[WorkoutSession] = []
        self._subscription: Optional[Subscription] = None
        self._ticker: Optional[DurationTicker] = None

    # ---- state ----
    @property
    def state(self) -> TrackerState:
        return TrackerState.ACTIVE if self._current is not None else TrackerState.IDLE

    @property
    def is_active(self) -> bool:
        return self._current is not None

    @property
    def current_session(self) -> Optional[WorkoutSession]:
        with self._lock:
            return self._current.snapshot() if self._current is not None else None

    @property
    def past_sessions(self) -> tuple[WorkoutSession, ...]:
        with self._lock:
            return tuple(self._past)

    def hydrate(self) -> int:
        """Load saved sessions from the store; returns how many were loaded."""
        if self.store is None:
            return 0
        sessions = load_history(self.store)
        with self._lock:
            self._past = sessions
        return len(sessions)

    def live_metrics(self) -> Metrics:
        """Metrics of the in-progress route over the elapsed time (zeros when idle)."""
        with self._lock:
            if self._current is None:
                return Metrics()
            route = list(self._current.route)
            elapsed = self._current.duration
        return calculate_metrics(route, duration_s=elapsed)

    # ---- transitions ----
    def start(self) -> bool:
        """
        Start a new session. Returns True if a session is active afterwards.

        Already active: no-op. If the feed cannot start (permission denied,
        no position) a warning is logged and the tracker stays idle.
        """
        with self._lock:
            if self._current is not None:
                return True

            try:
                self.feed.start_tracking()
            except LocationError as e:
                warn(f"Workout not started: {e}")
                return False

            start_time = self.clock()
            self._current = _ActiveSession(id=str(start_time), start_time=start_time)
            self._subscription = self.feed.subscribe(partial(self._deliver_fix, self._current))
            if self.tick_interval_s:
                self._ticker = DurationTicker(self.tick_interval_s, self.tick)
                self._ticker.start()

            log(f"Workout session {self._current.id} started")
            return True

    def _update_duration(self) -> None:
        self._current.duration = max(0, int((self.clock() - self._current.start_time) // 1000))

    def on_fix_received(self, fix: LocationFix) -> bool:
        """Append a fix to the active route. Ignored (False) when idle."""
        with self._lock:
            if self._current is None:
                return False
            self._current.route.append(fix)
            self._update_duration()
            return True

    def _deliver_fix(self, session: _ActiveSession, fix: LocationFix) -> None:
        # a fix published before stop() may arrive after a new start()
        with self._lock:
            if self._current is session:
                self.on_fix_received(fix)

    def tick(self) -> bool:
        """Time-driven duration update. Ignored (False) when idle."""
        with self._lock:
            if self._current is None:
                return False
            self._update_duration()
            return True

    def stop(self, save: bool = False) -> Optional[WorkoutSession]:
        """
        Finish the current session.

        Returns the finalized session (completed if `save`, else discarded),
        or None if the tracker was idle. Metrics are computed either way.
        A failed save is logged; the tracker still returns to idle.
        """
        with self._lock:
            if self._current is None:
                return None
            active = self._current

            # no more fixes or ticks for this session
            if self._subscription is not None:
                self._subscription.remove()
                self._subscription = None
            self.feed.stop_tracking()
            ticker, self._ticker = self._ticker, None
            if ticker is not None:
                ticker.cancel()

            # finalize; metrics are computed even when discarding
            end_time = self.clock()
            final_duration = max(0, int((end_time - active.start_time) // 1000))
            route = tuple(active.route)
            metrics = calculate_metrics(route, duration_s=final_duration)

            finished = WorkoutSession(
                id=active.id,
                start_time=active.start_time,
                end_time=end_time,
                duration=final_duration,
                distance=metrics.distance,
                avg_pace=metrics.avg_pace,
                avg_speed=metrics.avg_speed,
                max_speed=metrics.max_speed,
                route=route,
                status=SessionStatus.COMPLETED if save else SessionStatus.DISCARDED,
            )

            if save:
                self._past.append(finished)
                if self.store is not None and not append_session(self.store, finished):
                    warn(f"Workout session {finished.id} could not be saved to history")

            # back to idle
            self._current = None
            self.feed.clear_history()

        if ticker is not None and ticker is not threading.current_thread():
            ticker.join()

        log(
            f"Workout session {finished.id} {finished.status.value}: "
            f"{finished.duration}s, {finished.distance:.1f} m, {len(finished.route)} fixes"
        )
        return finished
