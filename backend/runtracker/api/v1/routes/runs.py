"""
Run history routes.

Endpoints:
- GET    /runs            - All runs, newest first
- POST   /runs            - Save a recorded route as a run
- POST   /runs/import     - Save an uploaded GPX file as a run
- GET    /runs/stats      - Totals across all runs
- GET    /runs/last       - Most recent run
- GET    /runs/{id}       - One run
- DELETE /runs/{id}       - Delete a run
- GET    /runs/{id}/gpx   - Download a run as GPX
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from runtracker.api.deps import get_store
from runtracker.exceptions import EmptyRouteError, InvalidTrackError, RunNotFoundError
from runtracker.features.gpx import GPXExporter
from runtracker.features.runs import HistoryStats, RunCreate, RunRecord, RunService
from runtracker.shared.constants import UnitSystem
from runtracker.storage import Store

logger = logging.getLogger(__name__)

router = APIRouter()

TOO_SHORT_DETAIL = "Run is too short to save; resend with confirm_short to keep it"
MAX_UPLOAD_BYTES = 20 * 1024 * 1024


@router.get("", response_model=List[RunRecord])
async def list_runs(store: Store = Depends(get_store)):
    """List stored runs, newest first."""
    return await RunService(store).list_runs()


@router.post("", response_model=RunRecord, status_code=201)
async def create_run(body: RunCreate, store: Store = Depends(get_store)):
    """
    Save a finished session's route.

    Returns 409 when the run is too short and confirm_short is not set.
    """
    run = await RunService(store).save_route(
        body.route,
        started_at_ms=body.started_at_ms,
        units=body.units,
        name=body.name,
        notes=body.notes,
        confirm_short=body.confirm_short,
    )
    if run is None:
        raise HTTPException(status_code=409, detail=TOO_SHORT_DETAIL)
    return run


@router.post("/import", response_model=RunRecord, status_code=201)
async def import_run(
    file: UploadFile = File(...),
    units: UnitSystem = UnitSystem.METRIC,
    confirm_short: bool = False,
    store: Store = Depends(get_store)
):
    """
    Save an uploaded GPX track as a run.

    Returns 400 for an unreadable file and 409 for an unconfirmed short run.
    """
    content = await file.read()

    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty")

    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="File too large (max 20MB)")

    try:
        samples = GPXExporter.parse(content)
    except InvalidTrackError as e:
        raise HTTPException(status_code=400, detail=str(e))

    run = await RunService(store).save_route(
        samples,
        units=units,
        confirm_short=confirm_short,
    )
    if run is None:
        raise HTTPException(status_code=409, detail=TOO_SHORT_DETAIL)

    logger.info(f"Imported {file.filename} as run {run.id}")
    return run


@router.get("/stats", response_model=HistoryStats)
async def get_history_stats(store: Store = Depends(get_store)):
    """Total runs, distance, time and average pace."""
    return await RunService(store).history_stats()


@router.get("/last", response_model=RunRecord)
async def get_last_run(store: Store = Depends(get_store)):
    run = await RunService(store).last_run()
    if run is None:
        raise HTTPException(status_code=404, detail="No runs recorded yet")
    return run


@router.get("/{run_id}", response_model=RunRecord)
async def get_run(run_id: str, store: Store = Depends(get_store)):
    try:
        return await RunService(store).get_run(run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{run_id}")
async def delete_run(run_id: str, store: Store = Depends(get_store)):
    try:
        await RunService(store).delete_run(run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}


@router.get("/{run_id}/gpx")
async def download_gpx(run_id: str, store: Store = Depends(get_store)):
    """
    Export a run as a GPX 1.1 file.

    Returns 400 when the run has no route to export.
    """
    try:
        run = await RunService(store).get_run(run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        content = GPXExporter.generate(run)
    except EmptyRouteError as e:
        raise HTTPException(status_code=400, detail=str(e))

    filename = GPXExporter.filename(run)
    logger.info(f"Exporting run {run_id} as {filename}")

    return Response(
        content=content,
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
