"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from runtracker.api.v1.routes import runs, settings, recovery

api_router = APIRouter()

api_router.include_router(runs.router, prefix="/runs", tags=["Runs"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
api_router.include_router(recovery.router, prefix="/recovery", tags=["Recovery"])
