from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from pydantic import ValidationError

from .config import COMPLETED_SESSION_CAP
from .models import FireAlertSession
from .settings import get_settings

logger = logging.getLogger(__name__)


class JsonSessionFile:
    """Best-effort JSON mirror of the completed-session history."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def write(self, sessions: List[FireAlertSession]) -> bool:
        payload = [session.model_dump(mode="json") for session in sessions]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2))
        except OSError as exc:
            logger.warning(
                "Could not persist completed sessions",
                extra={"path": self.path, "reason": exc},
            )
            return False
        return True

    def read(self) -> List[FireAlertSession]:
        if not self.path.exists():
            return []

        try:
            raw = self.path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(
                "Could not read persisted sessions; starting empty",
                extra={"path": self.path, "reason": exc},
            )
            return []

        if not isinstance(data, list):
            return []

        sessions = []
        for payload in data:
            try:
                sessions.append(FireAlertSession.model_validate(payload))
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed persisted session",
                    extra={"path": self.path, "reason": exc.error_count()},
                )
        return sessions


class SessionStore:
    """
    In-memory active/completed session views with an optional persistent mirror.

    Completed sessions are kept newest first and capped; active sessions are keyed
    by session id. The in-memory views stay authoritative when the mirror fails.
    """

    def __init__(
        self,
        mirror: Optional[JsonSessionFile] = None,
        capacity: int = COMPLETED_SESSION_CAP,
    ) -> None:
        self.mirror = mirror
        self.capacity = capacity
        self._active: Dict[str, FireAlertSession] = {}
        self._completed: List[FireAlertSession] = []
        self._lock = Lock()
        if mirror is not None:
            self._completed = mirror.read()[:capacity]

    def open_session(self, session: FireAlertSession) -> None:
        with self._lock:
            self._active[session.id] = session.model_copy(deep=True)

    def update_session(self, session: FireAlertSession) -> None:
        with self._lock:
            self._active[session.id] = session.model_copy(deep=True)

    def complete_session(self, session: FireAlertSession) -> None:
        """Move a closed session from the active set to the head of the history."""
        with self._lock:
            self._active.pop(session.id, None)
            self._completed = [session.model_copy(deep=True), *self._completed[: self.capacity - 1]]
            snapshot = list(self._completed)

        if self.mirror is not None:
            self.mirror.write(snapshot)

    def load_completed_sessions(self) -> List[FireAlertSession]:
        with self._lock:
            return [session.model_copy(deep=True) for session in self._completed]

    def list_active_sessions(self) -> List[FireAlertSession]:
        with self._lock:
            return [session.model_copy(deep=True) for session in self._active.values()]

    def active_session_for(self, device_id: str) -> Optional[FireAlertSession]:
        with self._lock:
            for session in self._active.values():
                if session.device_id == device_id:
                    return session.model_copy(deep=True)
        return None


@lru_cache
def build_default_store(path: Optional[str] = None) -> SessionStore:
    settings = get_settings()
    store_path = settings.session_store_path if path is None else path
    mirror = JsonSessionFile(Path(store_path)) if store_path else None
    return SessionStore(mirror=mirror)
