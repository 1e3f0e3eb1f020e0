# trackmax/feed/replay.py
"""
A LocationFeed over a recorded list of fixes (e.g. a GPX file).

Permissions are simulated; time is simulated too: clock() returns the
timestamp of the most recent fix, so a SessionTracker driven by it sees the
same durations as the original recording.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable, Optional

from trackmax.errors import PositionUnavailableError
from trackmax.feed.location import LocationFeed, PermissionStatus
from trackmax.formats.gpx import read_gpx_fixes
from trackmax.models import LocationFix


class ReplayLocationFeed(LocationFeed):
    def __init__(
        self,
        fixes: Iterable[LocationFix],
        *,
        foreground: PermissionStatus = PermissionStatus.GRANTED,
        background: PermissionStatus = PermissionStatus.GRANTED,
    ):
        super().__init__()
        self._fixes = list(fixes)
        self._next = 0
        self._grant_foreground = foreground
        self._grant_background = background

    @classmethod
    def from_gpx(cls, path: Path, **kwargs) -> "ReplayLocationFeed":
        return cls(read_gpx_fixes(path), **kwargs)

    # ---- simulated platform ----
    def _query_permissions(self) -> tuple[PermissionStatus, PermissionStatus]:
        fg = self.foreground_permission or PermissionStatus.UNDETERMINED
        bg = self.background_permission or PermissionStatus.UNDETERMINED
        return fg, bg

    def _prompt_foreground(self) -> PermissionStatus:
        return self._grant_foreground

    def _prompt_background(self) -> PermissionStatus:
        return self._grant_background

    def _initial_fix(self) -> LocationFix:
        if self._next >= len(self._fixes):
            raise PositionUnavailableError("Recording has no remaining fixes.")
        return self._fixes[self._next]

    # ---- playback ----
    @property
    def remaining(self) -> int:
        return len(self._fixes) - self._next

    def clock(self) -> int:
        """Simulated now (ms): timestamp of the current fix, or 0 before any."""
        cur = self.current_fix
        return cur.timestamp if cur is not None else 0

    def emit_next(self) -> Optional[LocationFix]:
        """Publish the next recorded fix. None when exhausted or not tracking."""
        if not self.is_tracking or self._next >= len(self._fixes):
            return None
        fix = self._fixes[self._next]
        self._next += 1
        self.publish(fix)
        return fix

    def play(self, *, realtime: bool = False, speedup: float = 1.0) -> int:
        """
        Publish all remaining fixes; returns how many were delivered.

        With realtime=True, sleeps between fixes for the recorded gap
        divided by `speedup`.
        """
        sent = 0
        prev: Optional[LocationFix] = None
        while self.is_tracking and self.remaining:
            nxt = self._fixes[self._next]
            if realtime and prev is not None:
                gap_s = (nxt.timestamp - prev.timestamp) / 1000.0 / max(speedup, 1e-9)
                if gap_s > 0:
                    time.sleep(gap_s)
            if self.emit_next() is None:
                break
            prev = nxt
            sent += 1
        return sent
