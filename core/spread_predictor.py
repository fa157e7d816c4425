import math
from typing import List, Optional, Union

import numpy as np

from .config import (
    KM_PER_DEGREE,
    PRIMARY_RADIUS_FACTOR,
    PRIMARY_ZONE_INTENSITY,
    RAPID_SPREAD_WIND_SPEED,
    SECONDARY_ANGLE_SPREAD,
    SECONDARY_DISTANCE_MIN,
    SECONDARY_DISTANCE_SPAN,
    SECONDARY_INTENSITY_MIN,
    SECONDARY_INTENSITY_SPAN,
    SECONDARY_RADIUS_FACTOR,
    SECONDARY_ZONE_COUNT,
)
from .models import AffectedArea, WindSample

_COMPASS_POINTS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def fire_intensity(temperature: float, smoke: float, humidity: float) -> float:
    """
    Derived fire intensity in [0, 100].

    Hot air, dense smoke and dry air each push the value up:
    ``((temp - 20) / 40) * 100 + smoke / 2 + (100 - humidity) / 2``, clamped.
    """
    raw = ((temperature - 20.0) / 40.0) * 100.0 + smoke / 2.0 + (100.0 - humidity) / 2.0
    return max(0.0, min(100.0, raw))


def cardinal_direction(degrees: float) -> str:
    """16-point compass label for a bearing in degrees."""
    return _COMPASS_POINTS[math.floor((degrees % 360) / 22.5 + 0.5) % 16]


def spread_rate(wind_speed: float) -> str:
    return "rapid" if wind_speed > RAPID_SPREAD_WIND_SPEED else "moderate"


class SpreadPredictor:
    """
    Turns a fire location plus wind into a set of circular risk zones.

    Geometry uses a flat-Earth approximation (KM_PER_DEGREE per degree of
    latitude, longitude scaled by cos(latitude)), good enough at city/regional
    scale. The primary zone is fully deterministic; the secondary zones sample
    from the injected random generator so they are reproducible for a fixed seed.
    """

    def __init__(self, rng: Optional[Union[np.random.Generator, int]] = None) -> None:
        if isinstance(rng, np.random.Generator):
            self.rng = rng
        else:
            self.rng = np.random.default_rng(rng)

    def predict(
        self,
        latitude: float,
        longitude: float,
        wind: WindSample,
        intensity: float,
    ) -> List[AffectedArea]:
        """Primary downwind zone followed by SECONDARY_ZONE_COUNT perturbed zones."""
        intensity = max(0.0, min(100.0, intensity))
        base_distance_km = (wind.speed / 10.0) * (intensity / 100.0) * 2.0

        areas = [
            self._zone(
                latitude,
                longitude,
                bearing=wind.direction,
                distance_km=base_distance_km,
                intensity=PRIMARY_ZONE_INTENSITY,
                radius_factor=PRIMARY_RADIUS_FACTOR,
            )
        ]

        for _ in range(SECONDARY_ZONE_COUNT):
            # Draw order: angle, distance, intensity
            angle_variation = (self.rng.random() - 0.5) * SECONDARY_ANGLE_SPREAD
            distance_km = base_distance_km * (SECONDARY_DISTANCE_MIN + self.rng.random() * SECONDARY_DISTANCE_SPAN)
            zone_intensity = SECONDARY_INTENSITY_MIN + self.rng.random() * SECONDARY_INTENSITY_SPAN
            areas.append(
                self._zone(
                    latitude,
                    longitude,
                    bearing=wind.direction + angle_variation * 180.0,
                    distance_km=distance_km,
                    intensity=zone_intensity,
                    radius_factor=SECONDARY_RADIUS_FACTOR,
                )
            )

        return areas

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _offset(latitude: float, longitude: float, bearing: float, distance_km: float) -> tuple[float, float]:
        """
        Project ``distance_km`` from a point along ``bearing``.

        Latitude moves with sin(bearing), longitude with cos(bearing) divided by
        cos(latitude) to account for meridian convergence.
        """
        theta = math.radians(bearing)
        lat = latitude + distance_km * math.sin(theta) / KM_PER_DEGREE
        lon = longitude + distance_km * math.cos(theta) / (KM_PER_DEGREE * math.cos(math.radians(latitude)))
        return lat, lon

    @classmethod
    def _zone(
        cls,
        latitude: float,
        longitude: float,
        bearing: float,
        distance_km: float,
        intensity: float,
        radius_factor: float,
    ) -> AffectedArea:
        lat, lon = cls._offset(latitude, longitude, bearing, distance_km)
        return AffectedArea(
            latitude=lat,
            longitude=lon,
            intensity=intensity,
            radius=distance_km * radius_factor,
        )
