"""
Run Service

Turns a stopped session's samples into a RunRecord and manages stored
runs through the persistence collaborator.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional, Sequence

from runtracker.exceptions import RunNotFoundError
from runtracker.features.tracking.schemas import LocationSample
from runtracker.shared.constants import MIN_RUN_DISTANCE_KM, MIN_RUN_DURATION_S, UnitSystem

from .aggregator import calculate_all_stats, calculate_duration, calculate_total_distance
from .schemas import HistoryStats, RunRecord

if TYPE_CHECKING:
    from runtracker.storage.base import Store

logger = logging.getLogger(__name__)


def is_too_short(samples: Sequence[LocationSample]) -> bool:
    """
    Check whether a run is too short to save without confirmation.

    True when fewer than two samples, less than 100 m of filtered
    distance, or under 30 seconds of elapsed time.
    """
    if len(samples) < 2:
        return True

    distance = calculate_total_distance(samples)
    duration = calculate_duration(samples)

    return distance < MIN_RUN_DISTANCE_KM or duration < MIN_RUN_DURATION_S


def build_run_record(
    samples: Sequence[LocationSample],
    started_at_ms: int,
    units: UnitSystem = UnitSystem.METRIC,
    name: Optional[str] = None,
    notes: Optional[str] = None
) -> RunRecord:
    """
    Build an unsaved RunRecord from a finished session.

    Args:
        samples: Raw samples in arrival order (become the route)
        started_at_ms: Session start instant (epoch ms)
        units: Unit system active at stop time
        name: Optional run name
        notes: Optional free-form notes

    Returns:
        RunRecord without id
    """
    stats = calculate_all_stats(samples, units)

    record = RunRecord(
        date=datetime.fromtimestamp(started_at_ms / 1000, tz=timezone.utc),
        duration_seconds=stats.duration_seconds,
        distance_km=stats.distance_km,
        avg_pace_sec_per_km=stats.avg_pace_sec_per_km,
        max_speed_kmh=stats.max_speed_kmh,
        splits=stats.splits,
        elevation=stats.elevation,
        route=list(samples),
        unit_system_at_save=units,
    )
    return record.with_details(name, notes)


def summarize_history(runs: Sequence[RunRecord]) -> HistoryStats:
    """Totals across runs; average pace is 0 when no distance was covered."""
    if not runs:
        return HistoryStats()

    total_distance = sum(run.distance_km for run in runs)
    total_seconds = sum(run.duration_seconds for run in runs)

    return HistoryStats(
        total_runs=len(runs),
        total_distance_km=total_distance,
        total_seconds=total_seconds,
        avg_pace_sec_per_km=total_seconds / total_distance if total_distance > 0 else 0.0,
    )


@dataclass
class FinishedRun:
    """A stopped session awaiting the user's save decision."""
    record: RunRecord
    too_short: bool


class RunService:
    """
    Service for finishing, saving and browsing runs.

    Persistence failures propagate to the caller untouched so the UI can
    tell the user; in-memory session state is never modified here.
    """

    def __init__(self, store: "Store"):
        self.store = store

    def finish(
        self,
        samples: Sequence[LocationSample],
        started_at_ms: int,
        units: UnitSystem = UnitSystem.METRIC
    ) -> FinishedRun:
        """Compute the record for a stopped session and flag short runs."""
        record = build_run_record(samples, started_at_ms, units)
        return FinishedRun(record=record, too_short=is_too_short(samples))

    async def save(self, finished: FinishedRun, confirm_short: bool = False) -> Optional[str]:
        """
        Persist a finished run.

        Args:
            finished: Result of finish(), with name/notes already applied
            confirm_short: User confirmed saving a too-short run

        Returns:
            New run id, or None when a too-short run was not confirmed
        """
        if finished.too_short and not confirm_short:
            logger.info("Run too short and not confirmed, not saving")
            return None

        run_id = await self.store.save_completed_run(finished.record)
        logger.info(f"Saved run {run_id} ({finished.record.distance_km:.2f} km)")
        return run_id

    async def save_route(
        self,
        samples: Sequence[LocationSample],
        started_at_ms: Optional[int] = None,
        units: UnitSystem = UnitSystem.METRIC,
        name: Optional[str] = None,
        notes: Optional[str] = None,
        confirm_short: bool = False
    ) -> Optional[RunRecord]:
        """
        Finish, name and save a route recorded elsewhere.

        started_at_ms defaults to the first sample's timestamp, or now for
        an empty route.

        Returns:
            Saved record with its id, or None when a too-short run was
            not confirmed
        """
        if started_at_ms is None:
            if samples:
                started_at_ms = samples[0].timestamp_ms
            else:
                started_at_ms = int(datetime.now(timezone.utc).timestamp() * 1000)

        finished = self.finish(samples, started_at_ms, units)
        finished = FinishedRun(
            record=finished.record.with_details(name, notes),
            too_short=finished.too_short,
        )

        run_id = await self.save(finished, confirm_short)
        if run_id is None:
            return None
        return finished.record.saved_as(run_id)

    async def list_runs(self) -> List[RunRecord]:
        return await self.store.load_all_runs()

    async def get_run(self, run_id: str) -> RunRecord:
        """
        Raises:
            RunNotFoundError: If no such run exists
        """
        run = await self.store.load_run(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run

    async def delete_run(self, run_id: str) -> None:
        await self.store.delete_run(run_id)
        logger.info(f"Deleted run {run_id}")

    async def last_run(self) -> Optional[RunRecord]:
        return await self.store.load_last_run()

    async def history_stats(self) -> HistoryStats:
        return summarize_history(await self.store.load_all_runs())
