"""
Configuration constants for the fire-alert session engine.

This module contains all tunable parameters for deduplication, session tracking
and spread prediction.
"""

# ============================================================================
# Ingestion Configuration
# ============================================================================

# Number of accepted readings kept per device for duplicate detection
DEDUP_WINDOW_SIZE = 20

# ============================================================================
# Session Configuration
# ============================================================================

SESSION_READING_CAP = 50  # Readings retained per session (newest first)
COMPLETED_SESSION_CAP = 10  # Completed sessions kept in history

# Fold gate: a fire reading is folded into the active session when it is
# spaced far enough in time OR differs enough from the last folded reading.
FOLD_INTERVAL_MS = 5000
TEMP_CHANGE_THRESHOLD = 1.0  # °C
SMOKE_CHANGE_THRESHOLD = 5.0  # ppm
HUMIDITY_CHANGE_THRESHOLD = 2.0  # %

# ============================================================================
# Sensor Status Configuration
# ============================================================================

WARNING_TEMPERATURE = 35.0  # °C
WARNING_SMOKE = 50.0  # ppm

# ============================================================================
# Spread Prediction Configuration
# ============================================================================

KM_PER_DEGREE = 111.0  # Flat-Earth approximation, valid at regional scale

PRIMARY_ZONE_INTENSITY = 0.8
PRIMARY_RADIUS_FACTOR = 1000  # meters per km of spread distance

SECONDARY_ZONE_COUNT = 3
SECONDARY_RADIUS_FACTOR = 800
SECONDARY_ANGLE_SPREAD = 0.5  # fraction of 180° (±45° around the wind)
SECONDARY_DISTANCE_MIN = 0.3
SECONDARY_DISTANCE_SPAN = 0.4
SECONDARY_INTENSITY_MIN = 0.4
SECONDARY_INTENSITY_SPAN = 0.3

# Zone risk classification
HIGH_RISK_INTENSITY = 0.6
MEDIUM_RISK_INTENSITY = 0.4

# Wind speed above which spread is reported as rapid
RAPID_SPREAD_WIND_SPEED = 15.0

# ============================================================================
# Weather Fallback Configuration
# ============================================================================

FALLBACK_WIND_SPEED_MIN = 3.5
FALLBACK_WIND_SPEED_SPAN = 5.0
FALLBACK_WIND_GUST_MIN = 5.0
FALLBACK_WIND_GUST_SPAN = 5.0
