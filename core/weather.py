import logging
from typing import Callable, Optional

import numpy as np

from .config import (
    FALLBACK_WIND_GUST_MIN,
    FALLBACK_WIND_GUST_SPAN,
    FALLBACK_WIND_SPEED_MIN,
    FALLBACK_WIND_SPEED_SPAN,
)
from .models import WindSample

logger = logging.getLogger(__name__)

# Any callable (lat, lon) -> WindSample, typically an HTTP weather client
WindSource = Callable[[float, float], WindSample]


def synthetic_wind_sample(rng: np.random.Generator) -> WindSample:
    """Plausible stand-in wind, flagged ``synthetic`` so callers can tell."""
    return WindSample(
        speed=FALLBACK_WIND_SPEED_MIN + rng.random() * FALLBACK_WIND_SPEED_SPAN,
        direction=rng.random() * 360.0,
        gust=FALLBACK_WIND_GUST_MIN + rng.random() * FALLBACK_WIND_GUST_SPAN,
        synthetic=True,
    )


class WeatherService:
    """Wraps an external wind source and never lets its failures escape."""

    def __init__(
        self,
        source: Optional[WindSource] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.source = source
        self.rng = rng if rng is not None else np.random.default_rng()

    def fetch_wind(self, latitude: float, longitude: float) -> WindSample:
        if self.source is None:
            return synthetic_wind_sample(self.rng)

        try:
            return self.source(latitude, longitude)
        except Exception as exc:
            logger.warning(
                "Wind fetch failed; using synthetic sample",
                extra={"reason": f"{type(exc).__name__}: {exc}"},
            )
            return synthetic_wind_sample(self.rng)
