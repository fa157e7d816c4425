# tests/core/test_monitoring_service.py

import threading

import numpy as np
import pytest

from core.config import DEDUP_WINDOW_SIZE
from core.models import SessionTransition, WindSample
from core.monitoring_service import FireMonitoringService
from core.session_store import SessionStore
from core.spread_predictor import SpreadPredictor
from core.weather import WeatherService


def _record(second=0, is_fire=True, device_id="DEV-1", temp=55.0, smoke=120.0, humidity=20.0, record_id=None):
    return {
        "_id": record_id or f"{device_id}-{second}",
        "deviceId": device_id,
        "latitude": 6.9,
        "longitude": 79.8,
        "humidity": humidity,
        "temp": temp,
        "smoke": smoke,
        "isFire": is_fire,
        "timestamp": f"2025-08-01T14:{second // 60:02d}:{second % 60:02d}Z",
    }


def _service(source=None):
    return FireMonitoringService(
        store=SessionStore(),
        weather=WeatherService(source=source, rng=np.random.default_rng(0)),
        predictor=SpreadPredictor(0),
    )


def test_duplicate_delivery_is_suppressed():
    """Feeding the same raw delivery twice never doubles the session reading count."""
    service = _service()

    first = service.ingest(_record(0))
    second = service.ingest(_record(0, record_id="re-delivered"))

    assert first.accepted is True
    assert first.transition == SessionTransition.opened
    assert second.accepted is False
    assert second.transition is None
    assert len(service.active_sessions()[0].readings) == 1
    assert len(service.recent_readings("DEV-1")) == 1


def test_full_episode_open_fold_close():
    service = _service()

    service.ingest(_record(0))
    service.ingest(_record(10, temp=58.0))
    closed = service.ingest(_record(20, is_fire=False, temp=30.0, smoke=5.0, humidity=55.0))

    assert closed.transition == SessionTransition.closed
    assert service.active_sessions() == []
    completed = service.completed_sessions()
    assert len(completed) == 1
    assert completed[0].end_time == "2025-08-01T14:00:20Z"
    assert completed[0].max_temp == 58.0


def test_recent_window_is_bounded():
    service = _service()
    for second in range(DEDUP_WINDOW_SIZE + 5):
        service.ingest(_record(second, is_fire=False))

    assert len(service.recent_readings("DEV-1")) == DEDUP_WINDOW_SIZE


def test_wind_is_fetched_once_per_accepted_fire_reading():
    calls = []

    def source(lat, lon):
        calls.append((lat, lon))
        return WindSample(speed=20.0, direction=90.0)

    service = _service(source)
    service.ingest(_record(0))
    service.ingest(_record(0))  # duplicate
    service.ingest(_record(1))  # observed, still a new fire reading
    service.ingest(_record(2, is_fire=False))

    assert len(calls) == 2


def test_affected_areas_use_latest_fire_reading_and_wind():
    service = _service(lambda lat, lon: WindSample(speed=20.0, direction=90.0))
    service.ingest(_record(0, temp=40.0, smoke=20.0, humidity=60.0))

    prediction = service.predict_affected_areas("DEV-1")

    assert prediction.reading.device_id == "DEV-1"
    assert prediction.fire_intensity == 80.0
    assert prediction.wind_cardinal == "E"
    assert prediction.spread_rate == "rapid"
    assert len(prediction.areas) == 4
    assert prediction.areas[0].radius == pytest.approx((20 / 10) * 0.8 * 2 * 1000)


def test_affected_areas_fall_back_to_synthetic_wind():
    def failing(lat, lon):
        raise TimeoutError("weather timeout")

    service = _service(failing)
    result = service.ingest(_record(0))

    assert result.wind.synthetic is True
    assert service.predict_affected_areas("DEV-1").wind.synthetic is True


def test_affected_areas_without_fire_reading_raise_lookup_error():
    service = _service()
    service.ingest(_record(0, is_fire=False))

    with pytest.raises(LookupError):
        service.predict_affected_areas("DEV-1")


def test_concurrent_devices_do_not_interfere():
    service = _service()
    devices = [f"DEV-{n}" for n in range(8)]

    def feed(device_id):
        for second in range(0, 60, 6):
            service.ingest(_record(second, device_id=device_id))

    threads = [threading.Thread(target=feed, args=(device_id,)) for device_id in devices]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    active = service.active_sessions()
    assert sorted(s.device_id for s in active) == devices
    assert all(len(s.readings) == 10 for s in active)


def test_nan_delivery_keeps_window_bounds():
    """A malformed "nan" temperature is folded as 0, never as NaN."""
    service = _service()
    service.ingest(_record(0, temp=50.0))

    result = service.ingest(_record(10, temp="nan"))

    session = result.session
    assert result.transition == SessionTransition.folded
    assert session.readings[0].temperature == 0.0
    assert session.min_temp <= session.avg_temp <= session.max_temp
    assert session.avg_temp == 25.0
    assert 0.0 <= service.predict_affected_areas("DEV-1").fire_intensity <= 100.0
