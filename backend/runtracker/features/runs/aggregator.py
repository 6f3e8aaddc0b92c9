"""
Route Aggregator

Reduces an ordered sample sequence into distance, duration, pace, peak
speed and elevation change.

Distance and speed come from filtered segments only. Duration is wall
clock between the raw first and last samples, whatever was filtered.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from runtracker.features.tracking.schemas import LocationSample
from runtracker.shared.constants import UnitSystem
from runtracker.shared.elevation import calculate_elevation_changes

from .filters import iter_valid_segments
from .schemas import Elevation, Split
from .splits import calculate_splits


@dataclass
class RouteStats:
    """All statistics derived from one route."""
    distance_km: float = 0.0
    duration_seconds: int = 0
    avg_pace_sec_per_km: float = 0.0
    max_speed_kmh: float = 0.0
    elevation: Optional[Elevation] = None
    splits: List[Split] = field(default_factory=list)
    points: int = 0


def calculate_total_distance(samples: Sequence[LocationSample]) -> float:
    """
    Sum of distances over segments passing the sample filter.

    Returns:
        Distance in kilometers, 0 for fewer than two samples
    """
    return sum(segment.distance_km for segment in iter_valid_segments(samples))


def calculate_duration(samples: Sequence[LocationSample]) -> int:
    """Whole seconds between the first and last raw samples."""
    if len(samples) < 2:
        return 0

    elapsed_ms = samples[-1].timestamp_ms - samples[0].timestamp_ms
    return int(elapsed_ms // 1000)


def calculate_avg_pace(distance_km: float, duration_seconds: int) -> float:
    """
    Average pace in seconds per km.

    0 means undefined (no distance covered), never an instant pace.
    """
    if distance_km == 0:
        return 0.0
    return duration_seconds / distance_km


def calculate_max_speed(samples: Sequence[LocationSample]) -> float:
    """Peak speed in km/h among segments passing the filter, 0 if none."""
    return max(
        (segment.speed_kmh for segment in iter_valid_segments(samples)),
        default=0.0
    )


def calculate_elevation(samples: Sequence[LocationSample]) -> Optional[Elevation]:
    """Ascent/descent with 3 m hysteresis, None when no altitude was reported."""
    changes = calculate_elevation_changes([s.altitude_m for s in samples])
    if changes is None:
        return None

    ascent, descent = changes
    return Elevation(ascent_m=ascent, descent_m=descent)


def calculate_all_stats(
    samples: Sequence[LocationSample],
    units: UnitSystem = UnitSystem.METRIC
) -> RouteStats:
    """
    Compute every statistic in one pass over the route.

    Never raises: fewer than two samples give zero/absent results.
    """
    distance = calculate_total_distance(samples)
    duration = calculate_duration(samples)

    return RouteStats(
        distance_km=distance,
        duration_seconds=duration,
        avg_pace_sec_per_km=calculate_avg_pace(distance, duration),
        max_speed_kmh=calculate_max_speed(samples),
        elevation=calculate_elevation(samples),
        splits=calculate_splits(samples, units),
        points=len(samples),
    )
