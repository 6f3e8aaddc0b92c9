"""
SQL Store

Persistence collaborator backed by SQLAlchemy (async). Each call runs in
its own session and transaction; database errors are wrapped in
StorageError so callers can tell the user without knowing the backend.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from runtracker.exceptions import RunAlreadySavedError, RunNotFoundError, StorageError
from runtracker.features.runs.repository import RunRepository
from runtracker.features.runs.schemas import RunRecord
from runtracker.features.tracking.schemas import RecoverySnapshot
from runtracker.repositories.settings import SettingRepository, SnapshotRepository

from .base import Store

logger = logging.getLogger(__name__)


class SqlStore(Store):
    """Store writing to a relational database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    yield db
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}") from e

    # === Runs ===

    async def save_completed_run(self, record: RunRecord) -> str:
        if record.is_saved:
            raise RunAlreadySavedError(f"Run {record.id} is already saved")

        async with self._transaction("save run") as db:
            run = await RunRepository(db).create_from_record(record)
            run_id = run.id

        logger.info(f"Run {run_id} stored")
        return run_id

    async def load_all_runs(self) -> List[RunRecord]:
        async with self._transaction("load runs") as db:
            runs = await RunRepository(db).list_newest_first()
            return [RunRepository.to_record(run) for run in runs]

    async def load_run(self, run_id: str) -> Optional[RunRecord]:
        async with self._transaction("load run") as db:
            run = await RunRepository(db).get_by_id(run_id)
            return RunRepository.to_record(run) if run else None

    async def delete_run(self, run_id: str) -> None:
        async with self._transaction("delete run") as db:
            repo = RunRepository(db)
            run = await repo.get_by_id(run_id)
            if run is None:
                raise RunNotFoundError(run_id)
            await repo.delete(run)

    # === Settings ===

    async def get_setting(self, key: str, default: Any = None) -> Any:
        async with self._transaction("read setting") as db:
            return await SettingRepository(db).get_value(key, default)

    async def set_setting(self, key: str, value: Any) -> None:
        async with self._transaction("write setting") as db:
            await SettingRepository(db).set_value(key, value)

    # === Recovery snapshot ===

    async def save_snapshot(self, snapshot: RecoverySnapshot) -> None:
        async with self._transaction("save snapshot") as db:
            await SnapshotRepository(db).replace(snapshot)

    async def load_snapshot(self) -> Optional[RecoverySnapshot]:
        async with self._transaction("load snapshot") as db:
            return await SnapshotRepository(db).load()

    async def clear_snapshot(self) -> None:
        async with self._transaction("clear snapshot") as db:
            await SnapshotRepository(db).delete_all()

    # === Maintenance ===

    async def clear_all(self) -> None:
        async with self._transaction("clear data") as db:
            await RunRepository(db).delete_all()
            await SettingRepository(db).delete_all()
            await SnapshotRepository(db).delete_all()
