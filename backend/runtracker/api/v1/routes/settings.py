"""
User settings routes.

Known keys fall back to their defaults when never written; unknown keys
that were never written are 404.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from runtracker.api.deps import get_store
from runtracker.shared.constants import SETTING_HIGH_ACCURACY, SETTING_UNITS, UnitSystem
from runtracker.storage import Store

router = APIRouter()

DEFAULTS = {
    SETTING_UNITS: UnitSystem.METRIC.value,
    SETTING_HIGH_ACCURACY: True,
}

_MISSING = object()


class SettingValue(BaseModel):
    value: Any


class SettingResponse(BaseModel):
    key: str
    value: Any


def _validate(key: str, value: Any) -> Any:
    if key == SETTING_UNITS:
        try:
            return UnitSystem(value).value
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown unit system: {value}")
    if key == SETTING_HIGH_ACCURACY and not isinstance(value, bool):
        raise HTTPException(status_code=400, detail="high_accuracy must be true or false")
    return value


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(key: str, store: Store = Depends(get_store)):
    value = await store.get_setting(key, DEFAULTS.get(key, _MISSING))
    if value is _MISSING:
        raise HTTPException(status_code=404, detail=f"Setting {key} not found")
    return SettingResponse(key=key, value=value)


@router.put("/{key}", response_model=SettingResponse)
async def put_setting(key: str, body: SettingValue, store: Store = Depends(get_store)):
    value = _validate(key, body.value)
    await store.set_setting(key, value)
    return SettingResponse(key=key, value=value)
