import sqlite3
from pathlib import Path

import pytest

from trackmax.errors import StoreError
from trackmax.models import LocationFix, SessionStatus, UserPreferences, WorkoutSession
from trackmax.storage.history import (
    append_session,
    load_history,
    load_preferences,
    save_preferences,
)
from trackmax.storage.store import (
    MemoryStore,
    SqliteStore,
    USER_PREFERENCES_KEY,
    WORKOUT_SESSIONS_KEY,
)


def _session(sid="1", start=0):
    return WorkoutSession(
        id=sid,
        start_time=start,
        end_time=start + 60_000,
        duration=60,
        distance=250.0,
        avg_pace=240.0,
        avg_speed=4.1667,
        max_speed=4.5,
        route=(
            LocationFix(45.0, 7.0, start, altitude=None, speed=None),
            LocationFix(45.002, 7.0, start + 60_000, altitude=250.0, speed=4.5, accuracy=3.0),
        ),
        status=SessionStatus.COMPLETED,
    )


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path: Path):
    if request.param == "memory":
        return MemoryStore()
    return SqliteStore(tmp_path / "db" / "trackmax.sqlite")


def test_missing_key_loads_none(any_store):
    assert any_store.load("nope") is None


def test_save_load_remove(any_store):
    data = {"id": 1, "name": "Test Item"}
    assert any_store.save("testKey", data) is True
    assert any_store.load("testKey") == data
    assert any_store.remove("testKey") is True
    assert any_store.load("testKey") is None


def test_keys_are_prefixed(tmp_path: Path):
    store = SqliteStore(tmp_path / "kv.sqlite", key_prefix="app:")
    store.save(WORKOUT_SESSIONS_KEY, [])

    conn = sqlite3.connect(str(tmp_path / "kv.sqlite"))
    keys = [r[0] for r in conn.execute("SELECT key FROM kv_store")]
    conn.close()
    assert keys == ["app:workout_sessions"]


def test_corrupt_value_loads_none_and_warns(capsys):
    store = MemoryStore()
    store.items[store.prefixed("bad")] = '{"id": 3, value: "Unquoted"}'
    assert store.load("bad") is None
    assert 'Error loading data for key "bad"' in capsys.readouterr().err


def test_unserializable_value_is_not_saved():
    store = MemoryStore()
    assert store.save("obj", object()) is False
    assert store.items == {}


def test_unwritable_database_reports_failure(tmp_path: Path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    store = SqliteStore(blocker / "trackmax.sqlite")
    assert store.save("k", 1) is False
    assert store.load("k") is None


def test_history_round_trip(any_store):
    first, second = _session("1", 0), _session("2", 120_000)
    assert load_history(any_store) == []

    assert append_session(any_store, first)
    assert append_session(any_store, second)

    assert load_history(any_store) == [first, second]


def test_history_skips_unreadable_records(capsys):
    store = MemoryStore()
    store.save(WORKOUT_SESSIONS_KEY, [_session().to_dict(), {"id": "broken"}])
    sessions = load_history(store)
    assert [s.id for s in sessions] == ["1"]
    assert "Skipping unreadable session record" in capsys.readouterr().err


def test_history_that_is_not_a_list_is_ignored():
    store = MemoryStore()
    store.save(WORKOUT_SESSIONS_KEY, {"oops": True})
    assert load_history(store) == []


def test_preferences_default_and_round_trip():
    store = MemoryStore()
    assert load_preferences(store) == UserPreferences(units="km", map_style="street")
    assert load_preferences(store, UserPreferences(units="mi")) == UserPreferences(units="mi")

    save_preferences(store, UserPreferences(units="mi", map_style="satellite"))
    assert store.load(USER_PREFERENCES_KEY) == {"units": "mi", "map_style": "satellite"}
    assert load_preferences(store) == UserPreferences(units="mi", map_style="satellite")


def test_unknown_preference_values_fall_back():
    assert UserPreferences.from_dict({"units": "parsecs", "map_style": "hybrid"}) == UserPreferences()


def test_read_tells_missing_from_unreadable(flaky_store):
    store = flaky_store
    assert store.read("k") is None

    store.save("k", [1])
    store.failing_reads = 1
    with pytest.raises(StoreError):
        store.read("k")
    assert store.read("k") == [1]

    store.items[store.prefixed("k")] = "{not json"
    with pytest.raises(StoreError):
        store.read("k")


def test_append_keeps_history_when_read_fails(flaky_store, capsys):
    store = flaky_store
    first, second = _session("1", 0), _session("2", 120_000)
    append_session(store, first)
    append_session(store, second)

    store.failing_reads = 1
    assert append_session(store, _session("3", 240_000)) is False

    assert load_history(store) == [first, second]
    assert "not appended" in capsys.readouterr().err


def test_append_keeps_unreadable_records():
    store = MemoryStore()
    store.save(WORKOUT_SESSIONS_KEY, [_session("1").to_dict(), {"id": "broken"}])

    assert append_session(store, _session("2", 120_000))

    raw = store.load(WORKOUT_SESSIONS_KEY)
    assert [r["id"] for r in raw] == ["1", "broken", "2"]


def test_append_does_not_replace_malformed_history(capsys):
    store = MemoryStore()
    store.save(WORKOUT_SESSIONS_KEY, {"oops": True})

    assert append_session(store, _session()) is False
    assert store.load(WORKOUT_SESSIONS_KEY) == {"oops": True}
    assert "leaving it untouched" in capsys.readouterr().err
