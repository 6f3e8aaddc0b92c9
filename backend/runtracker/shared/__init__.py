"""
Shared utilities (NOT business logic).

Usage:
    from runtracker.shared import haversine, calculate_elevation_changes
    from runtracker.shared.formatters import format_pace
"""
from .geo import (
    haversine,
    distance_km,
)
from .elevation import (
    calculate_elevation_changes,
)
from .formatters import (
    convert_distance,
    convert_pace,
    format_duration,
    format_pace,
    format_distance,
    format_speed,
)
from .constants import (
    UnitSystem,
    SignalQuality,
    EARTH_RADIUS_KM,
    KM_TO_MI,
)

__all__ = [
    # Geo
    "haversine",
    "distance_km",
    # Elevation
    "calculate_elevation_changes",
    # Formatters
    "convert_distance",
    "convert_pace",
    "format_duration",
    "format_pace",
    "format_distance",
    "format_speed",
    # Constants
    "UnitSystem",
    "SignalQuality",
    "EARTH_RADIUS_KM",
    "KM_TO_MI",
]
