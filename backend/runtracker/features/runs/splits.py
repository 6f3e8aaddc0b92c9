"""
Split Calculator

Partitions filtered distance into fixed-length splits (per km, or per
the imperial split length) and reports duration and pace for each.

Split durations are raw wall-clock time since the split's start sample,
so time spent on filtered-out segments still counts towards the split
in which it happened.
"""

import logging
from typing import List, Sequence

from runtracker.features.tracking.schemas import LocationSample
from runtracker.shared.constants import MIN_PARTIAL_SPLIT, SPLIT_LENGTH_KM, UnitSystem

from .filters import iter_valid_segments
from .schemas import Split

logger = logging.getLogger(__name__)


def _elapsed_seconds(start_ms: int, end_ms: int) -> int:
    return int((end_ms - start_ms) // 1000)


def calculate_splits(
    samples: Sequence[LocationSample],
    units: UnitSystem = UnitSystem.METRIC
) -> List[Split]:
    """
    Calculate per-unit splits for a route.

    Walks filtered segments in order, accumulating distance. Each time the
    accumulated distance reaches the split length a completed split is
    emitted and the overflow carries into the next one. A trailing
    remainder above 0.1 becomes a final partial split; smaller remainders
    are dropped.

    Args:
        samples: Ordered raw samples
        units: Unit system deciding the split length

    Returns:
        Splits numbered from 1 without gaps
    """
    if len(samples) < 2:
        return []

    split_length = SPLIT_LENGTH_KM[units]
    splits: List[Split] = []

    current_distance = 0.0
    split_start_ms = samples[0].timestamp_ms

    for segment in iter_valid_segments(samples):
        current_distance += segment.distance_km

        if current_distance >= split_length:
            split_time = _elapsed_seconds(split_start_ms, segment.curr.timestamp_ms)
            splits.append(Split(
                number=len(splits) + 1,
                distance=split_length,
                duration_seconds=split_time,
                pace_sec_per_unit=split_time / split_length,
                unit=units,
            ))

            current_distance -= split_length
            split_start_ms = segment.curr.timestamp_ms

    if current_distance > MIN_PARTIAL_SPLIT:
        split_time = _elapsed_seconds(split_start_ms, samples[-1].timestamp_ms)
        splits.append(Split(
            number=len(splits) + 1,
            distance=current_distance,
            duration_seconds=split_time,
            pace_sec_per_unit=split_time / current_distance,
            unit=units,
            is_partial=True,
        ))

    logger.debug(f"Calculated {len(splits)} splits over {len(samples)} samples")
    return splits
