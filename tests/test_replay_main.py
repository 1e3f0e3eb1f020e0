import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from trackmax.models import SessionStatus, UserPreferences
from trackmax.session import replay
from trackmax.storage import history
from trackmax.storage.history import load_history
from trackmax.storage.store import SqliteStore


@pytest.fixture
def fake_config(tmp_path: Path, monkeypatch):
    cfg = SimpleNamespace(
        paths=SimpleNamespace(sqlite_path=tmp_path / "db" / "trackmax.sqlite"),
        tracking=SimpleNamespace(key_prefix="test:", tick_interval_s=1.0),
        preferences=UserPreferences(),
    )
    monkeypatch.setattr(replay, "load_config", lambda: cfg)
    monkeypatch.setattr(history, "load_config", lambda: cfg)
    return cfg


def test_replay_saves_session(sample_gpx_path, fake_config, tmp_path, monkeypatch, capsys):
    out_gpx = tmp_path / "export" / "replayed.gpx"
    monkeypatch.setattr(
        sys, "argv", ["trackmax-replay", str(sample_gpx_path), "--export-gpx", str(out_gpx)]
    )

    assert replay.main() == 0

    store = SqliteStore(fake_config.paths.sqlite_path, key_prefix="test:")
    saved = load_history(store)
    assert len(saved) == 1
    s = saved[0]
    assert s.status is SessionStatus.COMPLETED
    assert s.duration == 60
    assert len(s.route) == 3
    assert s.distance == pytest.approx(222.39, abs=0.05)
    assert s.max_speed == 4.0
    assert out_gpx.is_file()
    assert "00:01:00" in capsys.readouterr().out


def test_replay_discard_does_not_save(sample_gpx_path, fake_config, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["trackmax-replay", "--discard", str(sample_gpx_path)])

    assert replay.main() == 0

    store = SqliteStore(fake_config.paths.sqlite_path, key_prefix="test:")
    assert load_history(store) == []
    assert "(discarded)" in capsys.readouterr().out


def test_replay_missing_file(fake_config, tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["trackmax-replay", str(tmp_path / "nope.gpx")])
    assert replay.main() == 1


def test_history_lists_saved_sessions(sample_gpx_path, fake_config, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["trackmax-history"])
    assert history.main() == 0
    assert "No saved workouts." in capsys.readouterr().out

    monkeypatch.setattr(sys, "argv", ["trackmax-replay", str(sample_gpx_path)])
    replay.main()
    capsys.readouterr()

    monkeypatch.setattr(sys, "argv", ["trackmax-history"])
    assert history.main() == 0
    out = capsys.readouterr().out
    assert "0.22 km" in out
    assert "3 pts" in out
