"""
Run-related schemas.

Pydantic models for completed runs, their splits and history totals.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from runtracker.exceptions import RunAlreadySavedError
from runtracker.features.tracking.schemas import LocationSample
from runtracker.shared.constants import UnitSystem


class Split(BaseModel):
    """
    Fixed-distance partition of a route.

    distance equals the configured split length except for a trailing
    partial split, which is always the last element.
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    distance: float
    duration_seconds: int
    pace_sec_per_unit: float
    unit: UnitSystem
    is_partial: bool = False


class Elevation(BaseModel):
    """Accumulated climb and drop in meters."""

    model_config = ConfigDict(frozen=True)

    ascent_m: float
    descent_m: float


class RunRecord(BaseModel):
    """
    Durable artifact of a finished session.

    distance_km and splits are always derived from route; id stays None
    until the record is first persisted.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    date: datetime
    duration_seconds: int
    distance_km: float
    avg_pace_sec_per_km: float
    max_speed_kmh: float
    splits: List[Split] = Field(default_factory=list)
    elevation: Optional[Elevation] = None
    route: List[LocationSample] = Field(default_factory=list)
    name: Optional[str] = None
    notes: Optional[str] = None
    unit_system_at_save: UnitSystem = UnitSystem.METRIC

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    def with_details(
        self,
        name: Optional[str] = None,
        notes: Optional[str] = None
    ) -> "RunRecord":
        """
        Return a copy with name and notes set.

        Raises:
            RunAlreadySavedError: If the record was already persisted
        """
        if self.is_saved:
            raise RunAlreadySavedError(f"Run {self.id} is already saved")

        return self.model_copy(update={
            "name": (name or "").strip() or None,
            "notes": (notes or "").strip() or None,
        })

    def saved_as(self, run_id: str) -> "RunRecord":
        """Return a copy carrying the id assigned by the store."""
        return self.model_copy(update={"id": run_id})


class HistoryStats(BaseModel):
    """Totals across all stored runs."""

    total_runs: int = 0
    total_distance_km: float = 0.0
    total_seconds: int = 0
    avg_pace_sec_per_km: float = 0.0


class RunCreate(BaseModel):
    """Request body for saving a recorded route as a run."""

    route: List[LocationSample] = Field(default_factory=list)
    started_at_ms: Optional[int] = None
    name: Optional[str] = None
    notes: Optional[str] = None
    units: UnitSystem = UnitSystem.METRIC
    confirm_short: bool = False
