from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .config import (
    HIGH_RISK_INTENSITY,
    MEDIUM_RISK_INTENSITY,
    WARNING_SMOKE,
    WARNING_TEMPERATURE,
)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware UTC datetime."""
    ts_str = value.replace('Z', '+00:00') if value.endswith('Z') else value
    parsed = datetime.fromisoformat(ts_str)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class SensorStatus(str, Enum):
    fire_detected = "fire_detected"
    warning = "warning"
    normal = "normal"


class SessionStatus(str, Enum):
    active = "active"
    completed = "completed"


class SessionTransition(str, Enum):
    """Outcome of feeding one accepted reading to the session state machine."""

    opened = "opened"
    folded = "folded"
    observed = "observed"
    closed = "closed"
    idle = "idle"


class SensorReading(BaseModel):
    """Canonical, immutable sensor reading produced by the normalizer."""

    model_config = ConfigDict(frozen=True)

    id: str
    device_id: str
    latitude: float
    longitude: float
    humidity: float
    temperature: float
    smoke: float
    is_fire: bool
    timestamp: str
    name: str

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        """Validate ISO-8601 format."""
        try:
            parse_timestamp(v)
        except (ValueError, AttributeError):
            raise ValueError('timestamp must be a valid ISO-8601 format string (e.g., "2025-08-01T10:00:00Z")')
        return v

    @property
    def dedup_key(self) -> Tuple[str, float, float, float]:
        return (self.timestamp, self.temperature, self.humidity, self.smoke)

    @computed_field
    @property
    def status(self) -> SensorStatus:
        if self.is_fire:
            return SensorStatus.fire_detected
        if self.temperature > WARNING_TEMPERATURE or self.smoke > WARNING_SMOKE:
            return SensorStatus.warning
        return SensorStatus.normal


class FireAlertSession(BaseModel):
    """
    A contiguous episode of fire-positive readings for one device.

    ``readings`` is ordered newest first. Min/max are tracked over the whole
    episode while averages cover only the retained window of readings.
    """

    id: str
    device_id: str
    start_time: str
    end_time: Optional[str] = None
    status: SessionStatus = SessionStatus.active
    readings: List[SensorReading] = Field(..., min_length=1)

    max_temp: float
    min_temp: float
    avg_temp: float
    max_smoke: float
    min_smoke: float
    avg_smoke: float
    max_humidity: float
    min_humidity: float
    avg_humidity: float

    @property
    def latest_reading(self) -> SensorReading:
        return self.readings[0]

    def duration_seconds(self, now: Optional[datetime] = None) -> float:
        """Elapsed time from start to end, or to ``now`` while still active."""
        start = parse_timestamp(self.start_time)
        if self.end_time is not None:
            end = parse_timestamp(self.end_time)
        else:
            end = now or datetime.now(timezone.utc)
        return (end - start).total_seconds()


class WindSample(BaseModel):
    speed: float = Field(..., ge=0.0)
    direction: float = Field(..., ge=0.0, le=360.0)
    gust: Optional[float] = None
    synthetic: bool = False


class AffectedArea(BaseModel):
    latitude: float
    longitude: float
    intensity: float = Field(..., ge=0.0, le=1.0)
    radius: float = Field(..., ge=0.0)

    @computed_field
    @property
    def risk_level(self) -> str:
        if self.intensity > HIGH_RISK_INTENSITY:
            return "high"
        if self.intensity > MEDIUM_RISK_INTENSITY:
            return "medium"
        return "low"


class SpreadPrediction(BaseModel):
    reading: Optional[SensorReading] = None
    wind: WindSample
    fire_intensity: float
    wind_cardinal: str
    spread_rate: str
    areas: List[AffectedArea]


class IngestResult(BaseModel):
    """What happened to one delivered device record."""

    reading: SensorReading
    accepted: bool
    transition: Optional[SessionTransition] = None
    session: Optional[FireAlertSession] = None
    wind: Optional[WindSample] = None
