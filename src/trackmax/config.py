"""
trackmax configuration loader

This module centralizes *all* configuration handling for trackmax.

Design goals:
- CLI flags override everything.
- Provide sensible defaults if no config exists.
- Allow per-machine config without committing personal paths:
    ~/.config/trackmax/config.toml
- Allow repo-local config:
    <repo_root>/config/config.toml
- Allow environment variable overrides for automation.

Precedence (highest to lowest) for any given value:
1) CLI argument (handled by each command)
2) Environment variables (TRACKMAX_*)
3) User config: ~/.config/trackmax/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults (~/Workouts/... paths)

This module uses Python's built-in tomllib on Python 3.11+, or `tomli` otherwise.

Sections understood:

    [paths]
    runtime_root = "~/Workouts"
    db_root = "~/Workouts/_db"

    [db]
    sqlite_path = "~/Workouts/_db/trackmax.sqlite"

    [tracking]
    tick_interval_s = 1.0

    [store]
    key_prefix = "trackmax:"

    [preferences]
    units = "km"          # or "mi"
    map_style = "street"  # or "satellite"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from trackmax.errors import ConfigError
from trackmax.models import UserPreferences

# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise ConfigError
      with a clear, user-facing message.

    Rationale:
    - Missing config files are normal and expected.
    - Malformed config files indicate user intent and should fail loudly.
    """
    if not path.is_file():
        return {}

    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib

    try:
        return tomllib.loads(path.read_text(encoding="utf-8")) or {}
    except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _deep_get(d: dict[str, Any], dotted_key: str) -> Any:
    """
    Fetch nested dictionary values using dot-separated keys.

    Example:
        _deep_get(cfg, "paths.runtime_root")

    Returns None if any part of the path is missing.
    """
    cur: Any = d
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _as_path(v: Any) -> Optional[Path]:
    """Coerce a config value into an expanded pathlib.Path, or None."""
    if v is None:
        return None
    if isinstance(v, Path):
        return v.expanduser()
    if isinstance(v, str):
        return Path(v).expanduser()
    return None


def _as_float(v: Any) -> Optional[float]:
    """Coerce into a float; None if the value is missing or not numeric."""
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _as_choice(v: Any, choices: tuple[str, ...]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip().lower()
    return s if s in choices else None


# ---------------------------------------------------------------------------
# Repo discovery + defaults
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the trackmax repo root.

    Heuristic:
    - The presence of a `config/` directory marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


def default_runtime_root() -> Path:
    """
    Default runtime root if nothing is configured.

    The database directory derives from this path unless explicitly overridden.
    """
    return Path.home() / "Workouts"


# ---------------------------------------------------------------------------
# Typed config dataclasses
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TrackmaxPaths:
    """Canonical resolved filesystem paths used by trackmax."""

    runtime_root: Path
    db_root: Path
    sqlite_path: Path


@dataclass(frozen=True)
class TrackingConfig:
    tick_interval_s: float = 1.0
    key_prefix: str = "trackmax:"


@dataclass(frozen=True)
class TrackmaxConfig:
    """
    Fully merged trackmax configuration.

    Attributes:
    - paths: resolved filesystem layout
    - tracking: tracker + store behavior
    - preferences: default user preferences (stored ones win at runtime)
    - source: provenance map showing where each value came from
    """

    paths: TrackmaxPaths
    tracking: TrackingConfig
    preferences: UserPreferences
    source: dict[str, str]


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
_PATH_KEYS = ("paths.runtime_root", "paths.db_root", "db.sqlite_path")

_ENV_MAP = {
    "TRACKMAX_RUNTIME_ROOT": "paths.runtime_root",
    "TRACKMAX_DB_ROOT": "paths.db_root",
    "TRACKMAX_SQLITE_PATH": "db.sqlite_path",
    "TRACKMAX_TICK_INTERVAL": "tracking.tick_interval_s",
    "TRACKMAX_KEY_PREFIX": "store.key_prefix",
    "TRACKMAX_UNITS": "preferences.units",
    "TRACKMAX_MAP_STYLE": "preferences.map_style",
}


def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
) -> TrackmaxConfig:
    """
    Load, merge, and normalize all trackmax configuration.

    This function is the single authoritative entry point
    for configuration access.
    """

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "trackmax" / "config.toml"

    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    # Every value starts at its default, then repo, user and env layers
    # overwrite it in that order.
    values: dict[str, Any] = {
        "paths.runtime_root": default_runtime_root(),
        "paths.db_root": None,
        "db.sqlite_path": None,
        "tracking.tick_interval_s": 1.0,
        "store.key_prefix": "trackmax:",
        "preferences.units": "km",
        "preferences.map_style": "street",
    }
    src = {k: "default" for k in values}

    def _coerce(key: str, raw: Any) -> Any:
        if key in _PATH_KEYS:
            return _as_path(raw)
        if key == "tracking.tick_interval_s":
            v = _as_float(raw)
            return v if v is not None and v >= 0 else None
        if key == "store.key_prefix":
            return None if raw is None else str(raw)
        if key == "preferences.units":
            return _as_choice(raw, ("km", "mi"))
        if key == "preferences.map_style":
            return _as_choice(raw, ("street", "satellite"))
        return raw

    for cfg, label, path in ((repo_cfg, "repo", repo_config_path), (user_cfg, "user", user_config_path)):
        for key in values:
            v = _coerce(key, _deep_get(cfg, key))
            if v is None:
                continue
            values[key] = v
            src[key] = f"{label}:{path}"

    # Environment variable overrides (highest non-CLI precedence)
    for env, key in _ENV_MAP.items():
        raw = os.environ.get(env)
        if not raw:
            continue
        v = _coerce(key, raw)
        if v is None:
            continue
        values[key] = v
        src[key] = f"env:{env}"

    # Derive db paths if only runtime_root was changed
    runtime_root: Path = values["paths.runtime_root"]
    db_root: Path = values["paths.db_root"] or runtime_root / "_db"
    sqlite_path: Path = values["db.sqlite_path"] or db_root / "trackmax.sqlite"

    paths = TrackmaxPaths(
        runtime_root=runtime_root.expanduser(),
        db_root=db_root.expanduser(),
        sqlite_path=sqlite_path.expanduser(),
    )
    tracking = TrackingConfig(
        tick_interval_s=values["tracking.tick_interval_s"],
        key_prefix=values["store.key_prefix"],
    )
    preferences = UserPreferences(
        units=values["preferences.units"],
        map_style=values["preferences.map_style"],
    )

    return TrackmaxConfig(paths=paths, tracking=tracking, preferences=preferences, source=src)
