from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_PATH_ENV = "FIRE_SESSION_STORE_PATH"
_RANDOM_SEED_ENV = "SPREAD_RANDOM_SEED"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    session_store_path: Optional[str]
    spread_random_seed: Optional[int]
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_seed(default: Optional[int]) -> Optional[int]:
    value = os.getenv(_RANDOM_SEED_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        session_store_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/fire_sessions.json"),
        spread_random_seed=_read_seed(None),
        log_level=_read_log_level("INFO"),
    )
