"""
Formatting utilities for display.

Distances and speeds are stored metric; these helpers convert to the
user's unit system at the last moment.
"""

from .constants import KM_TO_MI, UnitSystem


def convert_distance(km: float, units: UnitSystem) -> float:
    """Convert kilometers to the display unit."""
    return km * KM_TO_MI if units is UnitSystem.IMPERIAL else km


def convert_pace(sec_per_km: float, units: UnitSystem) -> float:
    """Convert seconds per km to seconds per display unit."""
    return sec_per_km / KM_TO_MI if units is UnitSystem.IMPERIAL else sec_per_km


def format_duration(seconds: int) -> str:
    """
    Format seconds as 'H:MM:SS' (or 'M:SS' under an hour).

    Args:
        seconds: Elapsed seconds

    Returns:
        Formatted string (e.g., '1:05:09' or '5:09')
    """
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_pace(sec_per_unit: float | None) -> str:
    """
    Format pace as 'M:SS'.

    A pace of 0 means "undefined" (no distance covered), not instant.

    Args:
        sec_per_unit: Pace in seconds per km or mile

    Returns:
        Formatted string (e.g., '6:30'), '-' when undefined
    """
    if not sec_per_unit:
        return "-"

    minutes = int(sec_per_unit // 60)
    seconds = int(sec_per_unit % 60)

    return f"{minutes}:{seconds:02d}"


def format_distance(km: float, units: UnitSystem = UnitSystem.METRIC) -> str:
    """Format distance with two decimals in the display unit."""
    return f"{convert_distance(km, units):.2f}"


def format_speed(kmh: float, units: UnitSystem = UnitSystem.METRIC) -> str:
    """Format speed with one decimal in the display unit."""
    return f"{convert_distance(kmh, units):.1f}"
