import logging
from functools import lru_cache
from threading import Lock
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from .dedup import DeduplicationFilter, RecentReadings
from .models import (
    FireAlertSession,
    IngestResult,
    SensorReading,
    SpreadPrediction,
    WindSample,
)
from .normalizer import ReadingNormalizer
from .session_aggregator import SessionAggregator
from .session_store import SessionStore, build_default_store
from .settings import get_settings
from .spread_predictor import SpreadPredictor, cardinal_direction, fire_intensity, spread_rate
from .weather import WeatherService

logger = logging.getLogger(__name__)


class FireMonitoringService:
    """
    High-level service coordinating normalization, deduplication, session
    tracking and spread prediction.

    Each delivered record runs normalize → dedup → aggregate under a lock scoped
    to its device, so devices never interfere and one device's records are
    handled in delivery order.
    """

    def __init__(
        self,
        store: SessionStore,
        weather: Optional[WeatherService] = None,
        predictor: Optional[SpreadPredictor] = None,
    ) -> None:
        self.store = store
        self.aggregator = SessionAggregator(store)
        self.weather = weather or WeatherService()
        self.predictor = predictor or SpreadPredictor()
        self.recent = RecentReadings()
        self._fire_context: Dict[str, Tuple[SensorReading, WindSample]] = {}
        self._device_locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()
        self._predict_lock = Lock()

    def ingest(self, raw: Mapping[str, Any]) -> IngestResult:
        """Process one raw device record delivered by the poller."""
        reading = ReadingNormalizer.normalize(raw)
        with self._device_lock(reading.device_id):
            return self._process(reading)

    def active_sessions(self) -> List[FireAlertSession]:
        return self.store.list_active_sessions()

    def completed_sessions(self) -> List[FireAlertSession]:
        return self.store.load_completed_sessions()

    def recent_readings(self, device_id: str) -> List[SensorReading]:
        with self._device_lock(device_id):
            return self.recent.window(device_id)

    def predict_affected_areas(self, device_id: str) -> SpreadPrediction:
        """Risk zones around the device's latest fire reading, using its wind sample."""
        with self._device_lock(device_id):
            context = self._fire_context.get(device_id)
        if context is None:
            raise LookupError(f"No fire reading recorded for device {device_id!r}.")

        reading, wind = context
        intensity = fire_intensity(reading.temperature, reading.smoke, reading.humidity)
        return self.predict(reading.latitude, reading.longitude, wind, intensity, reading=reading)

    def predict(
        self,
        latitude: float,
        longitude: float,
        wind: WindSample,
        intensity: float,
        reading: Optional[SensorReading] = None,
    ) -> SpreadPrediction:
        with self._predict_lock:
            areas = self.predictor.predict(latitude, longitude, wind, intensity)
        return SpreadPrediction(
            reading=reading,
            wind=wind,
            fire_intensity=max(0.0, min(100.0, intensity)),
            wind_cardinal=cardinal_direction(wind.direction),
            spread_rate=spread_rate(wind.speed),
            areas=areas,
        )

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _device_lock(self, device_id: str) -> Lock:
        with self._locks_guard:
            lock = self._device_locks.get(device_id)
            if lock is None:
                lock = self._device_locks[device_id] = Lock()
            return lock

    def _process(self, reading: SensorReading) -> IngestResult:
        # 1. Drop re-deliveries
        if not DeduplicationFilter.accept(reading, self.recent.window(reading.device_id)):
            logger.debug("Duplicate reading suppressed", extra={"device_id": reading.device_id})
            return IngestResult(reading=reading, accepted=False)
        self.recent.remember(reading)

        # 2. Session state machine
        update = self.aggregator.apply(reading)

        # 3. One wind lookup per accepted fire reading
        wind = None
        if reading.is_fire:
            wind = self.weather.fetch_wind(reading.latitude, reading.longitude)
            self._fire_context[reading.device_id] = (reading, wind)

        return IngestResult(
            reading=reading,
            accepted=True,
            transition=update.transition,
            session=update.session,
            wind=wind,
        )


@lru_cache
def build_default_service() -> FireMonitoringService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    weather_seed, spread_seed = np.random.SeedSequence(settings.spread_random_seed).spawn(2)
    return FireMonitoringService(
        store=build_default_store(),
        weather=WeatherService(rng=np.random.default_rng(weather_seed)),
        predictor=SpreadPredictor(np.random.default_rng(spread_seed)),
    )
