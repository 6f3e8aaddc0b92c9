"""
Settings and Snapshot Repositories

Data access layer for key/value settings and the recovery snapshot.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from runtracker.features.tracking.schemas import RecoverySnapshot
from runtracker.models.setting import RecoverySnapshotRow, Setting
from runtracker.shared.repository import BaseRepository


class SettingRepository(BaseRepository[Setting]):
    """Repository for user settings."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Setting)

    async def get_value(self, key: str, default: Any = None) -> Any:
        setting = await self.get(key)
        if setting is None:
            return default
        return setting.value

    async def set_value(self, key: str, value: Any) -> None:
        setting = await self.get(key)
        if setting is None:
            await self.create(key=key, value=value)
        else:
            setting.value = value
            await self.db.flush()


class SnapshotRepository(BaseRepository[RecoverySnapshotRow]):
    """Repository for the single recovery snapshot row."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RecoverySnapshotRow)

    async def replace(self, snapshot: RecoverySnapshot) -> None:
        data = snapshot.model_dump(mode="json")
        row = await self.get(RecoverySnapshotRow.SINGLETON_ID)
        if row is None:
            await self.create(id=RecoverySnapshotRow.SINGLETON_ID, **data)
            return

        row.samples = data["samples"]
        row.session_start_ms = data["session_start_ms"]
        row.last_snapshot_ms = data["last_snapshot_ms"]
        await self.db.flush()

    async def load(self) -> Optional[RecoverySnapshot]:
        row = await self.get(RecoverySnapshotRow.SINGLETON_ID)
        if row is None:
            return None

        return RecoverySnapshot.model_validate({
            "samples": row.samples or [],
            "session_start_ms": row.session_start_ms,
            "last_snapshot_ms": row.last_snapshot_ms,
        })
