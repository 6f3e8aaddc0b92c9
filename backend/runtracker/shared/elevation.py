"""
Elevation processing utilities.

This is the SINGLE SOURCE OF TRUTH for elevation calculations.
"""
from typing import Optional, Sequence, Tuple

from .constants import ELEVATION_THRESHOLD_M


def calculate_elevation_changes(
    altitudes: Sequence[Optional[float]],
    threshold_m: float = ELEVATION_THRESHOLD_M
) -> Optional[Tuple[float, float]]:
    """
    Calculate total ascent and descent with a noise threshold.

    Only consecutive pairs where both altitudes are present contribute.
    A delta above +threshold counts as ascent, below -threshold as
    descent; anything in between is sensor noise and ignored.

    Args:
        altitudes: Altitude per sample in meters (None when not reported)
        threshold_m: Hysteresis band in meters

    Returns:
        Tuple of (ascent_m, descent_m) rounded to 0.1 m, or None when
        fewer than two samples or no sample carries altitude
    """
    if len(altitudes) < 2:
        return None

    if all(alt is None for alt in altitudes):
        return None

    ascent = 0.0
    descent = 0.0

    for i in range(1, len(altitudes)):
        prev, curr = altitudes[i - 1], altitudes[i]
        if prev is None or curr is None:
            continue

        diff = curr - prev
        if diff > threshold_m:
            ascent += diff
        elif diff < -threshold_m:
            descent += abs(diff)

    return round(ascent, 1), round(descent, 1)
