"""
In-memory Store.

Dictionary-backed persistence collaborator for tests and for embedding
the tracker without a database.
"""

import uuid
from typing import Any, Dict, List, Optional

from runtracker.exceptions import RunAlreadySavedError, RunNotFoundError
from runtracker.features.runs.schemas import RunRecord
from runtracker.features.tracking.schemas import RecoverySnapshot

from .base import Store


class InMemoryStore(Store):
    """Store keeping everything in process memory."""

    def __init__(self):
        self._runs: Dict[str, RunRecord] = {}
        self._settings: Dict[str, Any] = {}
        self._snapshot: Optional[RecoverySnapshot] = None

    async def save_completed_run(self, record: RunRecord) -> str:
        if record.is_saved:
            raise RunAlreadySavedError(f"Run {record.id} is already saved")

        run_id = str(uuid.uuid4())
        self._runs[run_id] = record.saved_as(run_id)
        return run_id

    async def load_all_runs(self) -> List[RunRecord]:
        return sorted(self._runs.values(), key=lambda run: run.date, reverse=True)

    async def load_run(self, run_id: str) -> Optional[RunRecord]:
        return self._runs.get(run_id)

    async def delete_run(self, run_id: str) -> None:
        if self._runs.pop(run_id, None) is None:
            raise RunNotFoundError(run_id)

    async def get_setting(self, key: str, default: Any = None) -> Any:
        return self._settings.get(key, default)

    async def set_setting(self, key: str, value: Any) -> None:
        self._settings[key] = value

    async def save_snapshot(self, snapshot: RecoverySnapshot) -> None:
        self._snapshot = snapshot

    async def load_snapshot(self) -> Optional[RecoverySnapshot]:
        return self._snapshot

    async def clear_snapshot(self) -> None:
        self._snapshot = None

    async def clear_all(self) -> None:
        self._runs.clear()
        self._settings.clear()
        self._snapshot = None
