"""
Run Repository

Data access layer for completed runs.
"""

from datetime import timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from runtracker.models.run import Run
from runtracker.shared.repository import BaseRepository

from .schemas import RunRecord


class RunRepository(BaseRepository[Run]):
    """Repository for run operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Run)

    async def create_from_record(self, record: RunRecord) -> Run:
        """
        Create a new run row from an unsaved record.

        Args:
            record: RunRecord without id

        Returns:
            Created Run model with generated id
        """
        data = record.model_dump(mode="json", exclude={"id", "date", "unit_system_at_save"})
        return await self.create(
            date=record.date,
            unit_system=record.unit_system_at_save.value,
            **data,
        )

    async def list_newest_first(self) -> List[Run]:
        result = await self.db.execute(select(Run).order_by(Run.date.desc()))
        return list(result.scalars().all())

    async def get_by_id(self, run_id: str) -> Optional[Run]:
        return await self.get(run_id)

    @staticmethod
    def to_record(run: Run) -> RunRecord:
        """
        Convert Run model to RunRecord schema.

        Args:
            run: Run model

        Returns:
            RunRecord schema
        """
        date = run.date
        if date.tzinfo is None:
            # SQLite drops the offset; dates are always stored as UTC
            date = date.replace(tzinfo=timezone.utc)

        return RunRecord.model_validate({
            "id": run.id,
            "date": date,
            "duration_seconds": run.duration_seconds,
            "distance_km": run.distance_km,
            "avg_pace_sec_per_km": run.avg_pace_sec_per_km,
            "max_speed_kmh": run.max_speed_kmh,
            "splits": run.splits or [],
            "elevation": run.elevation,
            "route": run.route or [],
            "name": run.name,
            "notes": run.notes,
            "unit_system_at_save": run.unit_system,
        })
