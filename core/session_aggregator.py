import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from uuid import uuid4

import numpy as np

from .config import (
    FOLD_INTERVAL_MS,
    HUMIDITY_CHANGE_THRESHOLD,
    SESSION_READING_CAP,
    SMOKE_CHANGE_THRESHOLD,
    TEMP_CHANGE_THRESHOLD,
)
from .models import (
    FireAlertSession,
    SensorReading,
    SessionStatus,
    SessionTransition,
    parse_timestamp,
)
from .session_store import SessionStore

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return f"session-{uuid4()}"


@dataclass
class SessionUpdate:
    """Result of applying one reading: what happened and the affected session (if any)."""

    transition: SessionTransition
    session: Optional[FireAlertSession] = None


class SessionAggregator:
    """
    Per-device state machine grouping consecutive fire readings into sessions.

    Each device is either Idle (no entry in the active mapping) or Active. A fire
    reading opens a session from Idle; further fire readings are folded in only
    when they are spaced more than FOLD_INTERVAL_MS from the last folded reading
    or differ significantly from it; the first non-fire reading closes the
    session and hands it to the store.
    """

    def __init__(
        self,
        store: SessionStore,
        id_factory: Callable[[], str] = _new_session_id,
    ) -> None:
        self.store = store
        self._id_factory = id_factory
        self._active: Dict[str, FireAlertSession] = {}

    def apply(self, reading: SensorReading) -> SessionUpdate:
        """Feed one accepted (non-duplicate) reading through the transition table."""
        session = self._active.get(reading.device_id)

        if session is None:
            if not reading.is_fire:
                return SessionUpdate(SessionTransition.idle)
            return self._open(reading)

        if not reading.is_fire:
            return self._close(session, reading)

        if self._should_fold(session.latest_reading, reading):
            return self._fold(session, reading)

        logger.debug(
            "Fire reading observed without folding",
            extra={"device_id": reading.device_id, "session_id": session.id},
        )
        return SessionUpdate(SessionTransition.observed, session.model_copy(deep=True))

    def active_session(self, device_id: str) -> Optional[FireAlertSession]:
        session = self._active.get(device_id)
        return session.model_copy(deep=True) if session is not None else None

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _open(self, reading: SensorReading) -> SessionUpdate:
        session = FireAlertSession(
            id=self._id_factory(),
            device_id=reading.device_id,
            start_time=reading.timestamp,
            readings=[reading],
            max_temp=reading.temperature,
            min_temp=reading.temperature,
            avg_temp=reading.temperature,
            max_smoke=reading.smoke,
            min_smoke=reading.smoke,
            avg_smoke=reading.smoke,
            max_humidity=reading.humidity,
            min_humidity=reading.humidity,
            avg_humidity=reading.humidity,
        )
        self._active[reading.device_id] = session
        self.store.open_session(session)

        logger.info(
            "Fire alert session opened",
            extra={"device_id": reading.device_id, "session_id": session.id},
        )
        return SessionUpdate(SessionTransition.opened, session.model_copy(deep=True))

    def _fold(self, session: FireAlertSession, reading: SensorReading) -> SessionUpdate:
        # 1. Prepend, dropping the oldest beyond the cap
        session.readings = [reading, *session.readings[: SESSION_READING_CAP - 1]]

        # 2. Episode extremes, O(1)
        session.max_temp = max(session.max_temp, reading.temperature)
        session.min_temp = min(session.min_temp, reading.temperature)
        session.max_smoke = max(session.max_smoke, reading.smoke)
        session.min_smoke = min(session.min_smoke, reading.smoke)
        session.max_humidity = max(session.max_humidity, reading.humidity)
        session.min_humidity = min(session.min_humidity, reading.humidity)

        # 3. Window averages over the retained readings
        temps, smokes, humidities = self._extract_signals(session.readings)
        session.avg_temp = self._window_average(temps, session.min_temp, session.max_temp)
        session.avg_smoke = self._window_average(smokes, session.min_smoke, session.max_smoke)
        session.avg_humidity = self._window_average(humidities, session.min_humidity, session.max_humidity)

        self.store.update_session(session)

        logger.debug(
            "Fire reading folded into session",
            extra={
                "device_id": reading.device_id,
                "session_id": session.id,
                "reading_count": len(session.readings),
            },
        )
        return SessionUpdate(SessionTransition.folded, session.model_copy(deep=True))

    def _close(self, session: FireAlertSession, reading: SensorReading) -> SessionUpdate:
        session.end_time = reading.timestamp
        session.status = SessionStatus.completed
        del self._active[reading.device_id]
        self.store.complete_session(session)

        logger.info(
            "Fire alert session completed",
            extra={
                "device_id": reading.device_id,
                "session_id": session.id,
                "reading_count": len(session.readings),
            },
        )
        return SessionUpdate(SessionTransition.closed, session.model_copy(deep=True))

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    @classmethod
    def _should_fold(cls, last: SensorReading, reading: SensorReading) -> bool:
        """Time gate OR significant-change gate, both against the last folded reading."""
        return cls._gap_ms(last, reading) > FOLD_INTERVAL_MS or cls._significant_change(last, reading)

    @staticmethod
    def _gap_ms(last: SensorReading, reading: SensorReading) -> float:
        """Signed gap; out-of-order deliveries yield a negative value and never pass the time gate."""
        delta = parse_timestamp(reading.timestamp) - parse_timestamp(last.timestamp)
        return delta.total_seconds() * 1000.0

    @staticmethod
    def _significant_change(last: SensorReading, reading: SensorReading) -> bool:
        return (
            abs(reading.temperature - last.temperature) > TEMP_CHANGE_THRESHOLD
            or abs(reading.smoke - last.smoke) > SMOKE_CHANGE_THRESHOLD
            or abs(reading.humidity - last.humidity) > HUMIDITY_CHANGE_THRESHOLD
        )

    @staticmethod
    def _extract_signals(readings: List[SensorReading]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Extract temperature, smoke and humidity as NumPy arrays."""
        temps = np.array([r.temperature for r in readings], dtype=float)
        smokes = np.array([r.smoke for r in readings], dtype=float)
        humidities = np.array([r.humidity for r in readings], dtype=float)
        return temps, smokes, humidities

    @staticmethod
    def _window_average(values: np.ndarray, lower: float, upper: float) -> float:
        # Rounding in the sum can push the mean of equal values one ulp past the bounds
        return float(np.clip(np.mean(values), lower, upper))
