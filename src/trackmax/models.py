# trackmax/models.py
"""
Data contracts shared by the feed, the metrics engine and the tracker.

Optional kinematic fields (altitude, speed, accuracy) stay ``None`` when the
sensor could not estimate them. They are only treated as zero where a
computation says so explicitly (max speed).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class LocationFix:
    """A single GPS observation.

    Attributes:
        latitude: Decimal degrees.
        longitude: Decimal degrees.
        timestamp: Unix epoch milliseconds.
        altitude: Meters, or None.
        speed: Meters/second, or None if the sensor gave no estimate.
        accuracy: Horizontal accuracy in meters, or None.
    """

    latitude: float
    longitude: float
    timestamp: int
    altitude: Optional[float] = None
    speed: Optional[float] = None
    accuracy: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "LocationFix":
        return cls(
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            timestamp=int(d["timestamp"]),
            altitude=_opt_float(d.get("altitude")),
            speed=_opt_float(d.get("speed")),
            accuracy=_opt_float(d.get("accuracy")),
        )


def _opt_float(v: Any) -> Optional[float]:
    return None if v is None else float(v)


class SessionStatus(str, Enum):
    ONGOING = "ongoing"
    PAUSED = "paused"
    COMPLETED = "completed"
    DISCARDED = "discarded"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.DISCARDED)


@dataclass(frozen=True)
class Metrics:
    """Summary of a route. Always recomputable; never the source of truth."""

    distance: float = 0.0   # meters
    avg_pace: float = 0.0   # seconds per kilometer
    avg_speed: float = 0.0  # meters per second
    max_speed: float = 0.0  # meters per second

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class WorkoutSession:
    """
    Snapshot of one tracked workout.

    ``end_time`` is set if and only if the status is terminal. Terminal
    sessions are never resurrected; a new start produces a new ``id``.
    """

    id: str
    start_time: int
    end_time: Optional[int] = None
    duration: int = 0
    distance: float = 0.0
    avg_pace: float = 0.0
    avg_speed: float = 0.0
    max_speed: float = 0.0
    route: tuple[LocationFix, ...] = field(default_factory=tuple)
    status: SessionStatus = SessionStatus.ONGOING

    @property
    def metrics(self) -> Metrics:
        return Metrics(
            distance=self.distance,
            avg_pace=self.avg_pace,
            avg_speed=self.avg_speed,
            max_speed=self.max_speed,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "distance": self.distance,
            "avg_pace": self.avg_pace,
            "avg_speed": self.avg_speed,
            "max_speed": self.max_speed,
            "route": [p.to_dict() for p in self.route],
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "WorkoutSession":
        end_time = d.get("end_time")
        return cls(
            id=str(d["id"]),
            start_time=int(d["start_time"]),
            end_time=None if end_time is None else int(end_time),
            duration=int(d.get("duration", 0)),
            distance=float(d.get("distance", 0.0)),
            avg_pace=float(d.get("avg_pace", 0.0)),
            avg_speed=float(d.get("avg_speed", 0.0)),
            max_speed=float(d.get("max_speed", 0.0)),
            route=tuple(LocationFix.from_dict(p) for p in d.get("route", [])),
            status=SessionStatus(d.get("status", SessionStatus.COMPLETED.value)),
        )


@dataclass(frozen=True)
class UserPreferences:
    units: str = "km"          # "km" | "mi"
    map_style: str = "street"  # "street" | "satellite"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "UserPreferences":
        units = d.get("units", "km")
        map_style = d.get("map_style", "street")
        return cls(
            units=units if units in ("km", "mi") else "km",
            map_style=map_style if map_style in ("street", "satellite") else "street",
        )
