"""
Runs feature: route statistics and completed run records.

Usage:
    from runtracker.features.runs import calculate_all_stats, RunService

    stats = calculate_all_stats(samples, UnitSystem.METRIC)
"""

from .schemas import Split, Elevation, RunRecord, RunCreate, HistoryStats
from .filters import Segment, is_segment_valid, iter_valid_segments
from .aggregator import (
    RouteStats,
    calculate_total_distance,
    calculate_duration,
    calculate_avg_pace,
    calculate_max_speed,
    calculate_elevation,
    calculate_all_stats,
)
from .splits import calculate_splits
from .service import (
    FinishedRun,
    RunService,
    build_run_record,
    is_too_short,
    summarize_history,
)

__all__ = [
    # Schemas
    "Split",
    "Elevation",
    "RunRecord",
    "RunCreate",
    "HistoryStats",
    # Filtering
    "Segment",
    "is_segment_valid",
    "iter_valid_segments",
    # Aggregation
    "RouteStats",
    "calculate_total_distance",
    "calculate_duration",
    "calculate_avg_pace",
    "calculate_max_speed",
    "calculate_elevation",
    "calculate_all_stats",
    "calculate_splits",
    # Service
    "FinishedRun",
    "RunService",
    "build_run_record",
    "is_too_short",
    "summarize_history",
]
