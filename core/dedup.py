from collections import deque
from typing import Deque, Dict, Iterable, List

from .config import DEDUP_WINDOW_SIZE
from .models import SensorReading


class DeduplicationFilter:
    """Suppresses re-delivery of a reading already accepted for the same device."""

    @staticmethod
    def accept(reading: SensorReading, recent_window: Iterable[SensorReading]) -> bool:
        """
        Return False iff ``recent_window`` already holds the same physical reading.

        Readings are matched on (timestamp, temperature, humidity, smoke) only, so a
        re-delivery under a fresh ``id`` is still a duplicate. Exact equality, no
        tolerance.
        """
        key = reading.dedup_key
        return not any(existing.dedup_key == key for existing in recent_window)


class RecentReadings:
    """Per-device window of the most recently accepted readings, newest first."""

    def __init__(self, size: int = DEDUP_WINDOW_SIZE) -> None:
        self.size = size
        self._windows: Dict[str, Deque[SensorReading]] = {}

    def window(self, device_id: str) -> List[SensorReading]:
        return list(self._windows.get(device_id, ()))

    def remember(self, reading: SensorReading) -> None:
        """Prepend an accepted reading, evicting the oldest beyond the window size."""
        window = self._windows.setdefault(reading.device_id, deque(maxlen=self.size))
        window.appendleft(reading)

    def clear(self, device_id: str) -> None:
        self._windows.pop(device_id, None)
