"""
Crash recovery routes.

The UI asks once at startup whether an unfinished session can be offered,
then either resumes it locally or declines.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from runtracker.api.deps import get_store
from runtracker.features.tracking import RecoveryService, RecoveryStatus
from runtracker.storage import Store

router = APIRouter()


class RecoveryResponse(BaseModel):
    status: RecoveryStatus
    sample_count: int = 0
    session_start_ms: Optional[int] = None
    last_snapshot_ms: Optional[int] = None


@router.get("", response_model=RecoveryResponse)
async def check_recovery(store: Store = Depends(get_store)):
    """Inspect the stored snapshot; stale snapshots are discarded."""
    offer = await RecoveryService(store).check()
    if offer.snapshot is None:
        return RecoveryResponse(status=offer.status)
    return RecoveryResponse(
        status=offer.status,
        sample_count=offer.sample_count,
        session_start_ms=offer.snapshot.session_start_ms,
        last_snapshot_ms=offer.snapshot.last_snapshot_ms,
    )


@router.delete("")
async def decline_recovery(store: Store = Depends(get_store)):
    await RecoveryService(store).decline()
    return {"success": True}
