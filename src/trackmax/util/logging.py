# trackmax/util/logging.py
from __future__ import annotations

import datetime
import sys
import time


def utc_now_iso() -> str:
    """Return current UTC timestamp as ISO-8601 string."""
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds")

def now_ms() -> int:
    """Wall clock in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000

def _stamp() -> str:
    return datetime.datetime.now().astimezone().isoformat(timespec="seconds")

def log(msg: str) -> None:
    """Print a timestamped log line (local time with timezone)."""
    print(f"{_stamp()}  {msg}")

def warn(msg: str) -> None:
    """Print a timestamped warning line to stderr."""
    print(f"{_stamp()}  WARNING: {msg}", file=sys.stderr)
