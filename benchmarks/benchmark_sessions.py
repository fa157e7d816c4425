import time

import numpy as np

from core.monitoring_service import FireMonitoringService
from core.session_store import SessionStore
from core.spread_predictor import SpreadPredictor
from core.weather import WeatherService


SCENARIOS = {
    # 10 s poll cadence, fire for most of the hour
    "slow_poll_long_fire": {"devices": 5, "readings": 360, "interval_s": 10, "fire_from": 20, "fire_until": 340},
    # 1 s poll cadence: exercises the fold gate rather than the time gate
    "fast_poll_flicker": {"devices": 20, "readings": 600, "interval_s": 1, "fire_from": 100, "fire_until": 500},
}


def generate_records(devices, readings, interval_s, fire_from, fire_until, seed=0):
    """Synthetic raw device records, with every fifth delivery repeated to exercise dedup."""
    rng = np.random.default_rng(seed)
    records = []
    for step in range(readings):
        second = step * interval_s
        for device in range(devices):
            is_fire = fire_from <= step < fire_until
            record = {
                "deviceId": f"DEV-{device:03d}",
                "latitude": 6.9 + device * 0.01,
                "longitude": 79.8,
                "temp": round(float((60.0 if is_fire else 28.0) + rng.normal(0, 0.8)), 1),
                "smoke": round(float((150.0 if is_fire else 5.0) + rng.normal(0, 3.0)), 1),
                "humidity": round(float((20.0 if is_fire else 55.0) + rng.normal(0, 1.0)), 1),
                "isFire": is_fire,
                "timestamp": f"2025-08-01T{second // 3600:02d}:{second // 60 % 60:02d}:{second % 60:02d}Z",
            }
            records.append(record)
            if step % 5 == 0:
                records.append(dict(record))
    return records


def benchmark(records):
    """
    Benchmark utility: ingest all records, then predict for every device.
    Returns: (ingest_time, predict_time, accepted, completed_sessions)
    """
    service = FireMonitoringService(
        store=SessionStore(),
        weather=WeatherService(rng=np.random.default_rng(1)),
        predictor=SpreadPredictor(1),
    )

    t0 = time.perf_counter()
    accepted = sum(1 for record in records if service.ingest(record).accepted)
    t1 = time.perf_counter()

    device_ids = {record["deviceId"] for record in records}
    for device_id in device_ids:
        service.predict_affected_areas(device_id)
    t2 = time.perf_counter()

    return t1 - t0, t2 - t1, accepted, len(service.completed_sessions())


if __name__ == "__main__":
    for label, params in SCENARIOS.items():
        records = generate_records(**params)
        ingest_time, predict_time, accepted, completed = benchmark(records)

        print(f"\n=== Benchmark Results ({label}) ===")
        print(f"  Records delivered : {len(records)}")
        print(f"  Records accepted  : {accepted}")
        print(f"  Ingest time       : {ingest_time:.6f} seconds ({ingest_time / len(records) * 1e6:.1f} µs/record)")
        print(f"  Predict time      : {predict_time:.6f} seconds")
        print(f"  Completed sessions: {completed}")
        print()
