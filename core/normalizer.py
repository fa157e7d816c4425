import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from .models import SensorReading, parse_timestamp

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "1", "yes", "y"}


class ReadingNormalizer:
    """
    Maps heterogeneous upstream device records into a canonical SensorReading.

    Upstream devices disagree on field names (``temp`` vs ``temperature``,
    ``isfire`` vs ``isFire``, ``lastUpdate`` vs ``timestamp``) and may omit
    fields entirely. Missing or malformed values are defaulted here so the
    session engine never sees a partially populated reading.
    """

    @classmethod
    def normalize(cls, raw: Mapping[str, Any]) -> SensorReading:
        """Main pipeline: resolve identity → coerce measurements → build reading."""

        # 1. Identity
        device_id = cls._resolve_device_id(raw)
        reading_id = cls._first_present(raw, "_id", "id") or device_id

        # 2. Measurements (missing → 0, flags → False)
        temperature = cls._to_float(cls._first_present(raw, "temp", "temperature"), "temperature", device_id)
        reading = SensorReading(
            id=str(reading_id),
            device_id=device_id,
            latitude=cls._to_float(raw.get("latitude"), "latitude", device_id),
            longitude=cls._to_float(raw.get("longitude"), "longitude", device_id),
            humidity=cls._to_float(raw.get("humidity"), "humidity", device_id),
            temperature=temperature,
            smoke=cls._to_float(raw.get("smoke"), "smoke", device_id),
            is_fire=cls._to_bool(cls._first_present(raw, "isfire", "isFire", "is_fire")),
            timestamp=cls._resolve_timestamp(raw, device_id),
            name=str(raw.get("name") or f"Sensor {device_id}"),
        )
        return reading

    @classmethod
    def normalize_many(cls, records: Iterable[Any]) -> List[SensorReading]:
        """Normalize a device list, skipping entries that are not records at all."""
        readings = []
        for record in records or []:
            if not isinstance(record, Mapping):
                logger.warning("Skipping non-mapping device record", extra={"reason": type(record).__name__})
                continue
            readings.append(cls.normalize(record))
        return readings

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _first_present(raw: Mapping[str, Any], *keys: str) -> Optional[Any]:
        """Return the first value that is neither missing, None nor an empty string."""
        for key in keys:
            value = raw.get(key)
            if value is not None and value != "":
                return value
        return None

    @classmethod
    def _resolve_device_id(cls, raw: Mapping[str, Any]) -> str:
        device_id = cls._first_present(raw, "deviceId", "device_id", "id")
        if device_id is not None:
            return str(device_id)
        mongo_id = raw.get("_id")
        if mongo_id:
            return f"DEV-{str(mongo_id)[-4:]}"
        return "DEV-unknown"

    @staticmethod
    def _to_float(value: Any, field: str, device_id: str) -> float:
        if value is None or value == "":
            return 0.0
        if isinstance(value, bool):
            return float(value)
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            logger.warning(
                "Non-numeric %s defaulted to 0", field,
                extra={"device_id": device_id, "reason": type(value).__name__},
            )
            return 0.0
        except OverflowError:
            parsed = math.inf
        if not math.isfinite(parsed):
            logger.warning(
                "Non-finite %s defaulted to 0", field,
                extra={"device_id": device_id, "reason": "out of range"},
            )
            return 0.0
        return parsed

    @staticmethod
    def _to_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    @classmethod
    def _resolve_timestamp(cls, raw: Mapping[str, Any], device_id: str) -> str:
        value = cls._first_present(raw, "lastUpdate", "timestamp")
        if isinstance(value, str):
            try:
                parse_timestamp(value)
                return value
            except ValueError:
                logger.warning(
                    "Unparsable timestamp replaced with current time",
                    extra={"device_id": device_id, "reason": value},
                )
        elif value is not None:
            logger.warning(
                "Non-string timestamp replaced with current time",
                extra={"device_id": device_id, "reason": type(value).__name__},
            )
        return datetime.now(timezone.utc).isoformat()
