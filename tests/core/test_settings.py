from __future__ import annotations

import logging

from core.logging_config import ContextualFormatter
from core.settings import get_settings


def test_defaults(monkeypatch) -> None:
    for name in ("FIRE_SESSION_STORE_PATH", "SPREAD_RANDOM_SEED", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.session_store_path == "./tmp/fire_sessions.json"
        assert settings.spread_random_seed is None
        assert settings.log_level == "INFO"
    finally:
        get_settings.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("FIRE_SESSION_STORE_PATH", str(tmp_path / "sessions.json"))
    monkeypatch.setenv("SPREAD_RANDOM_SEED", "42")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.session_store_path == str(tmp_path / "sessions.json")
        assert settings.spread_random_seed == 42
        assert settings.log_level == "DEBUG"
    finally:
        get_settings.cache_clear()


def test_blank_path_disables_persistence_and_bad_seed_is_ignored(monkeypatch) -> None:
    monkeypatch.setenv("FIRE_SESSION_STORE_PATH", "   ")
    monkeypatch.setenv("SPREAD_RANDOM_SEED", "not-a-number")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.session_store_path is None
        assert settings.spread_random_seed is None
    finally:
        get_settings.cache_clear()


def test_contextual_formatter_appends_known_extras() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")
    record = logging.LogRecord("core", logging.INFO, __file__, 1, "Fire alert session opened", None, None)
    record.device_id = "DEV-1"
    record.session_id = "session-1"

    assert formatter.format(record) == "Fire alert session opened | device_id=DEV-1 session_id=session-1"
