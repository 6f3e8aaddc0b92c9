"""
Unified constants for tracking and route statistics.

This module provides a single source of truth for unit systems, signal
quality bands and the thresholds used by the sample filter, aggregator
and split calculator.
"""

from enum import Enum


class UnitSystem(str, Enum):
    """
    Display unit system.

    Canonical storage is always metric; imperial only changes how
    distances are displayed and how long a split is.
    """
    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def distance_label(self) -> str:
        return "km" if self is UnitSystem.METRIC else "mi"


class SignalQuality(str, Enum):
    """Instantaneous positioning quality derived from reported accuracy."""
    GOOD = "good"
    MEDIUM = "medium"
    POOR = "poor"
    UNKNOWN = "unknown"


# =============================================================================
# Geodesy
# =============================================================================

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Kilometers -> miles
KM_TO_MI = 0.621371


# =============================================================================
# Sample filter
# =============================================================================

# Samples reporting a worse horizontal accuracy are not trusted (meters)
MAX_ACCURACY_M = 50.0

# Maximum plausible running speed (km/h)
MAX_REASONABLE_SPEED_KMH = 25.0


# =============================================================================
# Aggregation
# =============================================================================

# Altitude deltas within +/- this value are treated as sensor noise (meters)
ELEVATION_THRESHOLD_M = 3.0

# Split length in kilometers for each unit system
SPLIT_LENGTH_KM: dict[UnitSystem, float] = {
    UnitSystem.METRIC: 1.0,
    UnitSystem.IMPERIAL: 1.0 * KM_TO_MI,
}

# Trailing remainders at or below this are dropped instead of emitted
MIN_PARTIAL_SPLIT = 0.1


# =============================================================================
# Signal quality bands (meters, inclusive upper bound)
# =============================================================================

GOOD_SIGNAL_ACCURACY_M = 10.0
MEDIUM_SIGNAL_ACCURACY_M = 30.0


# =============================================================================
# Too-short run policy
# =============================================================================

MIN_RUN_DISTANCE_KM = 0.1
MIN_RUN_DURATION_S = 30


# =============================================================================
# Settings keys
# =============================================================================

SETTING_UNITS = "units"
SETTING_HIGH_ACCURACY = "high_accuracy"
