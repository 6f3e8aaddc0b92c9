"""
Sample Filter

Per-segment validity gate for raw GPS samples.

The gate is applied to the segment between two consecutive samples, not
to single samples, so one noisy fix only invalidates the two segments
touching it and never the data that follows.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from runtracker.features.tracking.schemas import LocationSample
from runtracker.shared.constants import MAX_ACCURACY_M, MAX_REASONABLE_SPEED_KMH
from runtracker.shared.geo import distance_km


@dataclass(frozen=True)
class Segment:
    """A segment that passed the filter."""
    index: int  # index of the segment's end sample
    prev: LocationSample
    curr: LocationSample
    distance_km: float
    speed_kmh: float


def _is_inaccurate(sample: LocationSample) -> bool:
    return sample.accuracy_m is not None and sample.accuracy_m > MAX_ACCURACY_M


def segment_speed_kmh(prev: LocationSample, curr: LocationSample) -> Optional[float]:
    """
    Implied speed between two samples.

    Returns:
        Speed in km/h, or None when elapsed time is not positive
    """
    elapsed_ms = curr.timestamp_ms - prev.timestamp_ms
    if elapsed_ms <= 0:
        return None

    elapsed_hours = elapsed_ms / 3_600_000
    return distance_km(prev, curr) / elapsed_hours


def is_segment_valid(prev: LocationSample, curr: LocationSample) -> bool:
    """
    Check whether a segment should count towards distance and speed.

    Rejects the segment when either endpoint reports accuracy worse
    than 50 m, when elapsed time is not positive, or when the implied
    speed exceeds 25 km/h.
    """
    if _is_inaccurate(prev) or _is_inaccurate(curr):
        return False

    speed = segment_speed_kmh(prev, curr)
    if speed is None:
        return False

    return speed <= MAX_REASONABLE_SPEED_KMH


def iter_valid_segments(samples: Sequence[LocationSample]) -> Iterator[Segment]:
    """Yield every segment of the sequence that passes the filter, in order."""
    for i in range(1, len(samples)):
        prev, curr = samples[i - 1], samples[i]
        if not is_segment_valid(prev, curr):
            continue

        yield Segment(
            index=i,
            prev=prev,
            curr=curr,
            distance_km=distance_km(prev, curr),
            speed_kmh=segment_speed_kmh(prev, curr),
        )
