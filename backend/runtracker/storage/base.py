"""
Persistence collaborator interface.

Every Store durably keeps completed runs, small key/value settings and at
most one recovery snapshot. All methods are async so a Store can sit on
top of a database without blocking the tracking loop.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from runtracker.features.runs.schemas import RunRecord
from runtracker.features.tracking.schemas import RecoverySnapshot


class Store(ABC):
    """Abstract persistence collaborator."""

    # === Runs ===

    @abstractmethod
    async def save_completed_run(self, record: RunRecord) -> str:
        """
        Persist a new run and return its id.

        Raises:
            RunAlreadySavedError: If the record already has an id
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    async def load_all_runs(self) -> List[RunRecord]:
        """All runs, newest first."""
        pass

    @abstractmethod
    async def load_run(self, run_id: str) -> Optional[RunRecord]:
        pass

    @abstractmethod
    async def delete_run(self, run_id: str) -> None:
        """
        Raises:
            RunNotFoundError: If no such run exists
        """
        pass

    async def load_last_run(self) -> Optional[RunRecord]:
        runs = await self.load_all_runs()
        return runs[0] if runs else None

    async def has_runs(self) -> bool:
        return bool(await self.load_all_runs())

    # === Settings ===

    @abstractmethod
    async def get_setting(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    async def set_setting(self, key: str, value: Any) -> None:
        pass

    # === Recovery snapshot ===

    @abstractmethod
    async def save_snapshot(self, snapshot: RecoverySnapshot) -> None:
        """Replace the stored snapshot."""
        pass

    @abstractmethod
    async def load_snapshot(self) -> Optional[RecoverySnapshot]:
        pass

    @abstractmethod
    async def clear_snapshot(self) -> None:
        pass

    # === Maintenance ===

    @abstractmethod
    async def clear_all(self) -> None:
        """Delete all runs, settings and the snapshot."""
        pass
