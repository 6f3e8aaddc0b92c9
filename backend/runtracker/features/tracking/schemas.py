"""
Tracking schemas.

Pydantic models for raw location samples and recovery snapshots.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LocationSample(BaseModel):
    """
    One raw location fix as recorded by a tracking session.

    Immutable once created. Samples are ordered by timestamp_ms.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    altitude_m: Optional[float] = None
    accuracy_m: Optional[float] = None
    timestamp_ms: int


class RecoverySnapshot(BaseModel):
    """Periodic copy of an in-progress session's buffer."""

    model_config = ConfigDict(frozen=True)

    samples: List[LocationSample] = Field(default_factory=list)
    session_start_ms: int
    last_snapshot_ms: int

    @property
    def sample_count(self) -> int:
        return len(self.samples)
