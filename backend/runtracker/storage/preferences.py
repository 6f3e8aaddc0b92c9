"""
User preferences stored through the settings half of a Store.
"""

import logging
from dataclasses import dataclass

from runtracker.shared.constants import SETTING_HIGH_ACCURACY, SETTING_UNITS, UnitSystem

from .base import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Preferences:
    """Settings read once when a session starts."""
    units: UnitSystem = UnitSystem.METRIC
    high_accuracy: bool = True


async def load_preferences(store: Store) -> Preferences:
    """Read preferences, falling back to defaults for unknown values."""
    raw_units = await store.get_setting(SETTING_UNITS, UnitSystem.METRIC.value)
    try:
        units = UnitSystem(raw_units)
    except ValueError:
        logger.warning(f"Unknown unit system {raw_units!r}, using metric")
        units = UnitSystem.METRIC

    high_accuracy = await store.get_setting(SETTING_HIGH_ACCURACY, True)

    return Preferences(units=units, high_accuracy=bool(high_accuracy))


async def save_preferences(store: Store, preferences: Preferences) -> None:
    await store.set_setting(SETTING_UNITS, preferences.units.value)
    await store.set_setting(SETTING_HIGH_ACCURACY, preferences.high_accuracy)
