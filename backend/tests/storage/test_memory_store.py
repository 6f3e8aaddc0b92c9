"""
Tests for the in-memory store and preference helpers.
"""

import asyncio
from datetime import timedelta

import pytest

from runtracker.exceptions import RunAlreadySavedError, RunNotFoundError
from runtracker.features.runs.service import build_run_record
from runtracker.shared.constants import SETTING_UNITS, UnitSystem
from runtracker.storage import InMemoryStore, Preferences, load_preferences, save_preferences

T0 = 1_700_000_000_000


@pytest.fixture
def store():
    return InMemoryStore()


class TestRuns:
    """Tests for run persistence."""

    def test_ids_assigned_and_unique(self, store, track):
        """Each save gets a fresh id."""
        record = build_run_record(track([0.3] * 4, 108), T0)

        async def scenario():
            return await store.save_completed_run(record), await store.save_completed_run(record)

        first, second = asyncio.run(scenario())

        assert first != second
        assert asyncio.run(store.load_run(first)).id == first

    def test_saved_record_rejected(self, store, track):
        """A record with an id cannot be saved again."""
        record = build_run_record(track([0.3], 108), T0).saved_as("x")

        with pytest.raises(RunAlreadySavedError):
            asyncio.run(store.save_completed_run(record))

    def test_newest_first(self, store, track):
        """Runs list newest first."""
        base = build_run_record(track([0.3], 108), T0)
        dates = [base.date + timedelta(days=d) for d in (1, 3, 2)]

        async def scenario():
            for date in dates:
                await store.save_completed_run(base.model_copy(update={"date": date}))
            return await store.load_all_runs(), await store.load_last_run()

        runs, last = asyncio.run(scenario())

        assert [r.date for r in runs] == sorted(dates, reverse=True)
        assert last.date == max(dates)

    def test_delete_unknown(self, store):
        """Deleting an unknown id raises."""
        with pytest.raises(RunNotFoundError):
            asyncio.run(store.delete_run("missing"))

    def test_has_runs_and_clear_all(self, store, track):
        """clear_all removes runs and settings."""
        record = build_run_record(track([0.3], 108), T0)

        async def scenario():
            assert not await store.has_runs()
            await store.save_completed_run(record)
            await store.set_setting("units", "imperial")
            assert await store.has_runs()
            await store.clear_all()
            return await store.has_runs(), await store.get_setting("units")

        assert asyncio.run(scenario()) == (False, None)


class TestPreferences:
    """Tests for preference helpers."""

    def test_defaults(self, store):
        """Unset preferences use defaults."""
        prefs = asyncio.run(load_preferences(store))

        assert prefs == Preferences(units=UnitSystem.METRIC, high_accuracy=True)

    def test_roundtrip(self, store):
        """Saved preferences load back."""
        async def scenario():
            await save_preferences(store, Preferences(units=UnitSystem.IMPERIAL, high_accuracy=False))
            return await load_preferences(store)

        prefs = asyncio.run(scenario())

        assert prefs.units == UnitSystem.IMPERIAL
        assert not prefs.high_accuracy

    def test_unknown_units_fall_back(self, store):
        """An unknown unit value loads as metric."""
        asyncio.run(store.set_setting(SETTING_UNITS, "furlongs"))

        assert asyncio.run(load_preferences(store)).units == UnitSystem.METRIC
