"""Unit tests for the session store and its JSON mirror."""

from __future__ import annotations

import json

from core.config import COMPLETED_SESSION_CAP
from core.models import FireAlertSession, SensorReading, SessionStatus
from core.session_store import JsonSessionFile, SessionStore, build_default_store


def _session(session_id: str = "session-1", device_id: str = "DEV-1", completed: bool = True) -> FireAlertSession:
    reading = SensorReading(
        id="r-1",
        device_id=device_id,
        latitude=6.9,
        longitude=79.8,
        humidity=20.0,
        temperature=55.0,
        smoke=120.0,
        is_fire=True,
        timestamp="2025-08-01T14:00:00Z",
        name=f"Sensor {device_id}",
    )
    return FireAlertSession(
        id=session_id,
        device_id=device_id,
        start_time=reading.timestamp,
        end_time="2025-08-01T14:05:00Z" if completed else None,
        status=SessionStatus.completed if completed else SessionStatus.active,
        readings=[reading],
        max_temp=55.0,
        min_temp=55.0,
        avg_temp=55.0,
        max_smoke=120.0,
        min_smoke=120.0,
        avg_smoke=120.0,
        max_humidity=20.0,
        min_humidity=20.0,
        avg_humidity=20.0,
    )


def test_complete_session_moves_from_active_to_history() -> None:
    store = SessionStore()
    active = _session(completed=False)
    store.open_session(active)

    assert store.active_session_for("DEV-1").id == "session-1"

    store.complete_session(_session())

    assert store.list_active_sessions() == []
    assert store.active_session_for("DEV-1") is None
    assert [s.id for s in store.load_completed_sessions()] == ["session-1"]


def test_history_is_newest_first_and_capped() -> None:
    store = SessionStore()
    for n in range(COMPLETED_SESSION_CAP + 3):
        store.complete_session(_session(f"session-{n}"))

    ids = [s.id for s in store.load_completed_sessions()]

    assert len(ids) == COMPLETED_SESSION_CAP
    assert ids[0] == f"session-{COMPLETED_SESSION_CAP + 2}"
    assert ids[-1] == "session-3"


def test_views_return_deep_copies() -> None:
    store = SessionStore()
    store.complete_session(_session())

    fetched = store.load_completed_sessions()[0]
    fetched.max_temp = 999.0

    assert store.load_completed_sessions()[0].max_temp == 55.0


def test_completion_is_persisted_and_reloaded(tmp_path) -> None:
    path = tmp_path / "sessions.json"
    store = SessionStore(mirror=JsonSessionFile(path))

    store.complete_session(_session("session-a"))
    store.complete_session(_session("session-b"))

    payload = json.loads(path.read_text())
    assert [item["id"] for item in payload] == ["session-b", "session-a"]
    assert payload[0]["readings"][0]["device_id"] == "DEV-1"

    reloaded = SessionStore(mirror=JsonSessionFile(path))
    assert [s.id for s in reloaded.load_completed_sessions()] == ["session-b", "session-a"]
    assert reloaded.load_completed_sessions()[0].status == SessionStatus.completed


def test_reload_applies_capacity(tmp_path) -> None:
    path = tmp_path / "sessions.json"
    sessions = [_session(f"session-{n}").model_dump(mode="json") for n in range(15)]
    path.write_text(json.dumps(sessions))

    store = SessionStore(mirror=JsonSessionFile(path))

    assert len(store.load_completed_sessions()) == COMPLETED_SESSION_CAP


def test_unwritable_medium_keeps_in_memory_state(tmp_path) -> None:
    """Persistence failure must not abort aggregation."""
    blocked = tmp_path / "blocked"
    blocked.mkdir()
    store = SessionStore(mirror=JsonSessionFile(blocked))

    store.complete_session(_session())

    assert [s.id for s in store.load_completed_sessions()] == ["session-1"]


def test_corrupt_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text("{not json")

    assert SessionStore(mirror=JsonSessionFile(path)).load_completed_sessions() == []


def test_malformed_entries_are_skipped(tmp_path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps([{"id": "broken"}, _session("session-ok").model_dump(mode="json")]))

    store = SessionStore(mirror=JsonSessionFile(path))

    assert [s.id for s in store.load_completed_sessions()] == ["session-ok"]


def test_default_store_uses_given_path(tmp_path) -> None:
    path = tmp_path / "default.json"
    build_default_store.cache_clear()
    try:
        store = build_default_store(str(path))
        assert store.mirror is not None
        assert store.mirror.path == path
    finally:
        build_default_store.cache_clear()
