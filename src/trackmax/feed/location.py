# trackmax/feed/location.py
"""
Location feed abstraction

A LocationFeed wraps a platform position source:
- foreground/background permission state
- tracking on/off
- a push channel of LocationFix events (subscribe -> Subscription)
- the latest fix and the raw history accumulated while tracking

Concrete feeds implement the permission requests and how the first fix is
obtained; everything else (listener bookkeeping, history, idempotent stop)
lives here.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

from trackmax.errors import PermissionDeniedError, PositionUnavailableError
from trackmax.models import LocationFix
from trackmax.util.logging import log, warn

FixCallback = Callable[[LocationFix], None]


class PermissionStatus(str, Enum):
    UNDETERMINED = "undetermined"
    GRANTED = "granted"
    DENIED = "denied"


class Subscription:
    """Handle returned by LocationFeed.subscribe(); remove() is idempotent."""

    def __init__(self, feed: "LocationFeed", callback: FixCallback):
        self._feed = feed
        self._callback = callback
        self.active = True

    def remove(self) -> None:
        if not self.active:
            return
        self.active = False
        self._feed._unsubscribe(self)


class LocationFeed(ABC):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscriptions: list[Subscription] = []
        self._history: list[LocationFix] = []
        self._current: Optional[LocationFix] = None
        self._tracking = False
        self.foreground_permission: Optional[PermissionStatus] = None
        self.background_permission: Optional[PermissionStatus] = None

    # ---- platform hooks ----
    @abstractmethod
    def _query_permissions(self) -> tuple[PermissionStatus, PermissionStatus]:
        """Current (foreground, background) status without prompting."""

    @abstractmethod
    def _prompt_foreground(self) -> PermissionStatus:
        ...

    @abstractmethod
    def _prompt_background(self) -> PermissionStatus:
        ...

    @abstractmethod
    def _initial_fix(self) -> LocationFix:
        """Fetch one position; raise PositionUnavailableError on failure."""

    def _begin_updates(self) -> None:
        """Start platform updates. Fixes are delivered through publish()."""

    def _end_updates(self) -> None:
        """Stop platform updates."""

    # ---- permissions ----
    def check_permissions(self) -> tuple[PermissionStatus, PermissionStatus]:
        fg, bg = self._query_permissions()
        self.foreground_permission = fg
        self.background_permission = bg
        return fg, bg

    def request_foreground_permission(self) -> PermissionStatus:
        self.foreground_permission = self._prompt_foreground()
        return self.foreground_permission

    def request_background_permission(self) -> PermissionStatus:
        """Background access is only requested once foreground access is granted."""
        fg = self.request_foreground_permission()
        if fg is not PermissionStatus.GRANTED:
            warn("Foreground permission is required before requesting background permission.")
            _, self.background_permission = self._query_permissions()
            return self.background_permission

        self.background_permission = self._prompt_background()
        return self.background_permission

    # ---- tracking ----
    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def current_fix(self) -> Optional[LocationFix]:
        return self._current

    @property
    def history(self) -> tuple[LocationFix, ...]:
        with self._lock:
            return tuple(self._history)

    def start_tracking(self) -> None:
        """
        Begin emitting fixes. Returns once the first fix is current.

        The first fix only becomes `current_fix`; it is not added to
        `history`, which holds the fixes delivered through publish().

        Raises:
          PermissionDeniedError: foreground permission not granted
          PositionUnavailableError: the first fix could not be obtained
        """
        with self._lock:
            if self._tracking:
                return

            fg = self.foreground_permission
            if fg is not PermissionStatus.GRANTED:
                fg = self.request_foreground_permission()
            if fg is not PermissionStatus.GRANTED:
                raise PermissionDeniedError("Foreground location permission not granted.")

            bg = self.background_permission
            if bg is not PermissionStatus.GRANTED:
                bg = self.request_background_permission()
                if bg is not PermissionStatus.GRANTED:
                    warn("Background location permission not granted. Tracking might be limited.")

            try:
                first = self._initial_fix()
            except PositionUnavailableError:
                self._tracking = False
                raise

            self._current = first
            self._begin_updates()
            self._tracking = True
            log(f"Location tracking started at {first.latitude:.6f},{first.longitude:.6f}")

    def stop_tracking(self) -> None:
        """Synchronously stop updates; calling it when not tracking is harmless."""
        with self._lock:
            if not self._tracking:
                return
            self._end_updates()
            self._tracking = False

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    def subscribe(self, callback: FixCallback) -> Subscription:
        sub = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def publish(self, fix: LocationFix) -> bool:
        """Deliver a fix to subscribers. Dropped (False) when not tracking."""
        with self._lock:
            if not self._tracking:
                return False
            self._current = fix
            self._history.append(fix)
            subs = list(self._subscriptions)

        for sub in subs:
            if sub.active:
                sub._callback(fix)
        return True
