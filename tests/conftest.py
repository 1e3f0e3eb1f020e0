from pathlib import Path
import pytest

from trackmax.errors import DatabaseError
from trackmax.models import LocationFix
from trackmax.storage.store import MemoryStore


class FakeClock:
    """Settable epoch-milliseconds clock."""

    def __init__(self, now_ms: int = 0):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class FlakyReadStore(MemoryStore):
    """MemoryStore whose next `failing_reads` reads raise."""

    def __init__(self):
        super().__init__()
        self.failing_reads = 0

    def _get(self, full_key):
        if self.failing_reads:
            self.failing_reads -= 1
            raise DatabaseError("database is locked")
        return super()._get(full_key)


@pytest.fixture
def sample_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "sample.gpx"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def flaky_store() -> FlakyReadStore:
    return FlakyReadStore()


@pytest.fixture
def make_fix():
    def _make(timestamp, speed=5.0, latitude=40.7128, longitude=-74.006):
        return LocationFix(
            latitude=latitude,
            longitude=longitude,
            timestamp=timestamp,
            altitude=50.0,
            speed=speed,
            accuracy=5.0,
        )
    return _make
