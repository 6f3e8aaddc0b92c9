"""
Tests for the tracking session state machine.

Sessions are driven by a ScriptedPositioningSource inside asyncio.run, so
every fix is delivered synchronously on the session's loop.
"""

import asyncio
import logging
from typing import List

import pytest

from runtracker.exceptions import (
    PermissionDeniedError,
    PositionUnavailableError,
    StorageError,
    TrackingError,
    UnsupportedDeviceError,
)
from runtracker.features.tracking.positioning import (
    Fix,
    PositioningErrorCode,
    PositioningFailure,
    ScriptedPositioningSource,
    WakeLock,
)
from runtracker.features.tracking.schemas import LocationSample, RecoverySnapshot
from runtracker.features.tracking.session import (
    SessionObserver,
    SessionState,
    TrackingConfig,
    TrackingSession,
)
from runtracker.shared.constants import SignalQuality, UnitSystem
from runtracker.storage import InMemoryStore

T0 = 1_700_000_000_000


def fixes(count: int, accuracy: float = 5.0) -> List[Fix]:
    """One fix per second moving north about 2.8 m each."""
    return [
        Fix(latitude=i * 0.000025, longitude=0.0, timestamp=T0 + i * 1000, accuracy=accuracy)
        for i in range(count)
    ]


class RecordingObserver(SessionObserver):

    def __init__(self):
        self.samples: List[LocationSample] = []
        self.statuses: List[SignalQuality] = []
        self.errors: List[TrackingError] = []

    def on_sample(self, sample):
        self.samples.append(sample)

    def on_status(self, status):
        self.statuses.append(status)

    def on_error(self, error):
        self.errors.append(error)


class CountingWakeLock(WakeLock):

    def __init__(self, grant: bool = True):
        self.grant = grant
        self.acquired = 0
        self.released = 0

    async def acquire(self):
        self.acquired += 1
        return self.grant

    async def release(self):
        # yield so an unawaited release would not finish on its own
        await asyncio.sleep(0)
        self.released += 1


class BrokenWakeLock(WakeLock):
    """Wake lock whose platform calls fail."""

    def __init__(self, fail_acquire: bool = False, fail_release: bool = False):
        self.fail_acquire = fail_acquire
        self.fail_release = fail_release

    async def acquire(self):
        if self.fail_acquire:
            raise OSError("wake lock not allowed")
        return True

    async def release(self):
        if self.fail_release:
            raise OSError("wake lock already gone")


class EagerSource(ScriptedPositioningSource):
    """Delivers the next scripted event from inside subscribe()."""

    def subscribe(self, on_fix, on_error, high_accuracy=True):
        handle = super().subscribe(on_fix, on_error, high_accuracy)
        self.emit()
        return handle


class FlakySubscribeSource(ScriptedPositioningSource):
    """subscribe() fails the first `failures` times."""

    def __init__(self, events=(), failures: int = 1):
        super().__init__(events)
        self.failures = failures

    def subscribe(self, on_fix, on_error, high_accuracy=True):
        if self.failures:
            self.failures -= 1
            raise RuntimeError("location service crashed")
        return super().subscribe(on_fix, on_error, high_accuracy)


class FailingSnapshotStore(InMemoryStore):

    async def save_snapshot(self, snapshot):
        raise StorageError("disk full")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def observer():
    return RecordingObserver()


def make_session(source, store, **kwargs):
    kwargs.setdefault("clock", lambda: T0)
    kwargs.setdefault("snapshot_interval_seconds", 3600)
    return TrackingSession(source, store, **kwargs)


# =============================================================================
# Lifecycle
# =============================================================================

class TestLifecycle:
    """Tests for start/stop/reset transitions."""

    def test_records_every_fix_in_order(self, store, observer):
        """Every delivered fix is buffered and observed in arrival order."""
        source = ScriptedPositioningSource(fixes(5))
        session = make_session(source, store)

        async def scenario():
            await session.start(TrackingConfig(observer=observer))
            assert session.state == SessionState.ACTIVE
            source.emit_all()
            return await session.stop()

        samples = asyncio.run(scenario())

        assert [s.timestamp_ms for s in samples] == [T0 + i * 1000 for i in range(5)]
        assert observer.samples == samples
        assert session.state == SessionState.STOPPED
        assert source.active_subscriptions == 0

    def test_started_at_is_activation_time(self, store):
        """Start time comes from the session clock at activation."""
        session = make_session(ScriptedPositioningSource(), store, clock=lambda: T0 + 5000)

        async def scenario():
            await session.start()
            await session.stop()

        asyncio.run(scenario())

        assert session.started_at_ms == T0 + 5000
        assert session.elapsed_seconds(T0 + 65_000) == 60

    def test_start_is_reentrant(self, store):
        """A second start while Active does nothing."""
        source = ScriptedPositioningSource(fixes(2))
        session = make_session(source, store)

        async def scenario():
            await session.start()
            source.emit()
            await session.start()
            source.emit()
            return await session.stop()

        samples = asyncio.run(scenario())

        assert len(source.permission_requests) == 1
        assert len(samples) == 2

    def test_stop_when_idle_returns_buffer(self, store):
        """Stopping an idle session returns the empty buffer."""
        session = make_session(ScriptedPositioningSource(), store)

        assert asyncio.run(session.stop()) == []
        assert session.state == SessionState.IDLE

    def test_fixes_after_stop_ignored(self, store):
        """The session unsubscribes on stop."""
        source = ScriptedPositioningSource(fixes(3))
        session = make_session(source, store)
        received = []
        source.subscribe(received.append, lambda failure: None)

        async def scenario():
            await session.start()
            source.emit()
            await session.stop()
            source.emit_all()

        asyncio.run(scenario())

        assert session.sample_count == 1
        assert len(received) == 3

    def test_reset_returns_to_idle(self, store):
        """Reset drops the buffer and start time."""
        source = ScriptedPositioningSource(fixes(2))
        session = make_session(source, store)

        async def scenario():
            await session.start()
            source.emit_all()
            await session.stop()

        asyncio.run(scenario())
        session.reset()

        assert session.state == SessionState.IDLE
        assert session.samples == []
        assert session.started_at_ms is None

    def test_restart_clears_buffer(self, store):
        """A fresh start does not carry samples from the previous run."""
        source = ScriptedPositioningSource(fixes(4))
        session = make_session(source, store)

        async def scenario():
            await session.start()
            source.emit()
            source.emit()
            await session.stop()
            await session.start()
            source.emit()
            return await session.stop()

        samples = asyncio.run(scenario())

        assert len(samples) == 1

    def test_reset_samples_keeps_recording(self, store):
        """Clearing samples mid-run leaves the session Active."""
        source = ScriptedPositioningSource(fixes(3))
        session = make_session(source, store)

        async def scenario():
            await session.start()
            source.emit()
            session.reset_samples()
            source.emit()
            assert session.is_tracking
            return await session.stop()

        assert len(asyncio.run(scenario())) == 1

    def test_config_exposed(self, store):
        """Units and accuracy mode reflect the start config."""
        session = make_session(ScriptedPositioningSource(), store)

        async def scenario():
            await session.start(TrackingConfig(high_accuracy=False, units=UnitSystem.IMPERIAL))
            await session.stop()

        asyncio.run(scenario())

        assert session.units == UnitSystem.IMPERIAL
        assert not session.high_accuracy


# =============================================================================
# Start failures
# =============================================================================

class TestStartFailures:
    """Tests for start() error paths."""

    def test_unsupported_device(self, store):
        """No positioning capability fails before leaving Idle."""
        session = make_session(ScriptedPositioningSource(available=False), store)

        with pytest.raises(UnsupportedDeviceError):
            asyncio.run(session.start())

        assert session.state == SessionState.IDLE

    def test_permission_denied(self, store):
        """A refused permission request leaves the session Idle and empty."""
        source = ScriptedPositioningSource(permission_error=PositioningErrorCode.PERMISSION_DENIED)
        session = make_session(source, store)

        with pytest.raises(PermissionDeniedError):
            asyncio.run(session.start())

        assert session.state == SessionState.IDLE
        assert session.samples == []
        assert source.active_subscriptions == 0

    def test_permission_request_uses_configured_timeout(self, store):
        """The accuracy mode and timeout are passed to the source."""
        source = ScriptedPositioningSource()
        session = make_session(source, store, positioning_timeout_seconds=7)

        async def scenario():
            await session.start(TrackingConfig(high_accuracy=False))
            await session.stop()

        asyncio.run(scenario())

        assert source.permission_requests == [(False, 7)]

    def test_subscribe_failure_returns_to_idle(self, store):
        """A crashing subscribe() does not leave the session stuck in Starting."""
        source = FlakySubscribeSource(fixes(1))
        wake_lock = CountingWakeLock()
        session = make_session(source, store, wake_lock=wake_lock)

        with pytest.raises(RuntimeError):
            asyncio.run(session.start())

        assert session.state == SessionState.IDLE
        assert wake_lock.released == wake_lock.acquired == 1

    def test_usable_after_subscribe_failure(self, store):
        """The next start() after a failed subscribe works normally."""
        source = FlakySubscribeSource(fixes(1))
        session = make_session(source, store)

        with pytest.raises(RuntimeError):
            asyncio.run(session.start())

        async def scenario():
            await session.start()
            source.emit()
            return await session.stop()

        assert len(asyncio.run(scenario())) == 1


# =============================================================================
# Delivery during subscribe
# =============================================================================

class TestDeliveryDuringSubscribe:
    """Tests for events a source delivers before subscribe() returns."""

    def test_fix_recorded(self, store, observer):
        """A fix delivered synchronously by subscribe() is not dropped."""
        source = EagerSource(fixes(1))
        session = make_session(source, store)

        async def scenario():
            await session.start(TrackingConfig(observer=observer))
            return await session.stop()

        samples = asyncio.run(scenario())

        assert len(samples) == 1
        assert observer.samples == samples

    def test_permission_revoked_interrupts(self, store, observer):
        """A revoked permission during subscribe() leaves nothing running."""
        source = EagerSource([PositioningFailure(PositioningErrorCode.PERMISSION_DENIED)])
        wake_lock = CountingWakeLock()
        session = make_session(source, store, wake_lock=wake_lock)

        async def scenario():
            await session.start(TrackingConfig(observer=observer))
            state = session.state
            await session.stop()
            return state

        state = asyncio.run(scenario())

        assert state == SessionState.STOPPED
        assert source.active_subscriptions == 0
        assert isinstance(observer.errors[0], PermissionDeniedError)
        assert wake_lock.released == 1


# =============================================================================
# Runtime failures and status
# =============================================================================

class TestRuntimeFailures:
    """Tests for positioning failures while Active."""

    def test_signal_status_per_fix(self, store, observer):
        """Each fix reports a signal quality band, poor fixes included."""
        source = ScriptedPositioningSource([
            Fix(0.0, 0.0, T0, accuracy=5.0),
            Fix(0.0, 0.0, T0 + 1000, accuracy=25.0),
            Fix(0.0, 0.0, T0 + 2000, accuracy=80.0),
            Fix(0.0, 0.0, T0 + 3000),
        ])
        session = make_session(source, store)

        async def scenario():
            await session.start(TrackingConfig(observer=observer))
            source.emit_all()
            return await session.stop()

        samples = asyncio.run(scenario())

        assert observer.statuses == [
            SignalQuality.GOOD,
            SignalQuality.MEDIUM,
            SignalQuality.POOR,
            SignalQuality.UNKNOWN,
        ]
        assert len(samples) == 4

    def test_transient_failure_keeps_recording(self, store, observer):
        """Position-unavailable is reported and recording continues."""
        source = ScriptedPositioningSource([
            Fix(0.0, 0.0, T0),
            PositioningFailure(PositioningErrorCode.POSITION_UNAVAILABLE),
            Fix(0.0001, 0.0, T0 + 1000),
        ])
        session = make_session(source, store)

        async def scenario():
            await session.start(TrackingConfig(observer=observer))
            source.emit_all()
            assert session.is_tracking
            return await session.stop()

        samples = asyncio.run(scenario())

        assert len(samples) == 2
        assert len(observer.errors) == 1
        assert isinstance(observer.errors[0], PositionUnavailableError)

    def test_permission_revoked_interrupts(self, store, observer):
        """Permission-denied stops the session but keeps the snapshot until stop()."""
        source = ScriptedPositioningSource(fixes(3) + [
            PositioningFailure(PositioningErrorCode.PERMISSION_DENIED),
        ])
        wake_lock = CountingWakeLock()
        session = make_session(source, store, wake_lock=wake_lock)

        async def scenario():
            await session.start(TrackingConfig(observer=observer))
            source.emit()
            source.emit()
            source.emit()
            await session.write_snapshot()
            source.emit()
            assert session.state == SessionState.STOPPED
            assert source.active_subscriptions == 0
            assert (await store.load_snapshot()) is not None
            samples = await session.stop()
            return samples, await store.load_snapshot()

        samples, snapshot = asyncio.run(scenario())

        assert len(samples) == 3
        assert isinstance(observer.errors[0], PermissionDeniedError)
        assert snapshot is None

    def test_stop_waits_for_interrupted_wake_lock_release(self, store):
        """The release scheduled by an interrupt has finished when stop() returns."""
        source = ScriptedPositioningSource([
            PositioningFailure(PositioningErrorCode.PERMISSION_DENIED),
        ])
        wake_lock = CountingWakeLock()
        session = make_session(source, store, wake_lock=wake_lock)

        async def scenario():
            await session.start()
            source.emit()
            await session.stop()

        asyncio.run(scenario())

        assert wake_lock.released == 1


# =============================================================================
# Snapshots
# =============================================================================

class TestSnapshots:
    """Tests for recovery snapshot writes."""

    def test_snapshot_contents(self, store):
        """Snapshot carries the buffer, first sample time and write time."""
        source = ScriptedPositioningSource(fixes(3))
        session = make_session(source, store, clock=lambda: T0 + 60_000)

        async def scenario():
            await session.start()
            source.emit_all()
            written = await session.write_snapshot()
            return written, await store.load_snapshot()

        written, snapshot = asyncio.run(scenario())

        assert written
        assert snapshot.sample_count == 3
        assert snapshot.session_start_ms == T0
        assert snapshot.last_snapshot_ms == T0 + 60_000

    def test_empty_buffer_not_snapshotted(self, store):
        """Nothing is written before the first fix."""
        session = make_session(ScriptedPositioningSource(), store)

        async def scenario():
            await session.start()
            return await session.write_snapshot(), await store.load_snapshot()

        written, snapshot = asyncio.run(scenario())

        assert not written
        assert snapshot is None

    def test_write_failure_does_not_stop_recording(self, caplog):
        """A failing store is logged and recording continues."""
        source = ScriptedPositioningSource(fixes(3))
        session = make_session(source, FailingSnapshotStore())

        async def scenario():
            await session.start()
            source.emit()
            written = await session.write_snapshot()
            source.emit()
            return written, session.is_tracking

        with caplog.at_level(logging.WARNING):
            written, tracking = asyncio.run(scenario())

        assert not written
        assert tracking
        assert session.sample_count == 2
        assert "Snapshot of 1 samples failed: disk full" in caplog.text

    def test_periodic_snapshot_then_cleared_on_stop(self, store):
        """The timer writes snapshots; a clean stop removes them."""
        source = ScriptedPositioningSource(fixes(2))
        session = make_session(source, store, snapshot_interval_seconds=0.01)

        async def scenario():
            await session.start()
            source.emit_all()
            await asyncio.sleep(0.05)
            during = await store.load_snapshot()
            await session.stop()
            return during, await store.load_snapshot()

        during, after = asyncio.run(scenario())

        assert during is not None
        assert during.sample_count == 2
        assert after is None


# =============================================================================
# Wake lock
# =============================================================================

class TestWakeLock:
    """Tests for best-effort display wake lock handling."""

    def test_acquired_and_released(self, store):
        """Lock is taken on start and given back on stop."""
        wake_lock = CountingWakeLock()
        session = make_session(ScriptedPositioningSource(), store, wake_lock=wake_lock)

        async def scenario():
            await session.start()
            await session.stop()

        asyncio.run(scenario())

        assert wake_lock.acquired == 1
        assert wake_lock.released == 1

    def test_not_granted_is_not_released(self, store):
        """A lock that was refused is never released."""
        wake_lock = CountingWakeLock(grant=False)
        session = make_session(ScriptedPositioningSource(), store, wake_lock=wake_lock)

        async def scenario():
            await session.start()
            assert session.is_tracking
            await session.stop()

        asyncio.run(scenario())

        assert wake_lock.released == 0

    def test_acquire_error_still_tracks(self, store):
        """A failing acquire() does not prevent recording."""
        source = ScriptedPositioningSource(fixes(2))
        session = make_session(source, store, wake_lock=BrokenWakeLock(fail_acquire=True))

        async def scenario():
            await session.start()
            assert session.is_tracking
            source.emit_all()
            return await session.stop()

        assert len(asyncio.run(scenario())) == 2

    def test_release_error_still_stops(self, store):
        """A failing release() does not prevent a clean stop."""
        source = ScriptedPositioningSource(fixes(2))
        session = make_session(source, store, wake_lock=BrokenWakeLock(fail_release=True))

        async def scenario():
            await session.start()
            source.emit_all()
            await session.write_snapshot()
            samples = await session.stop()
            return samples, await store.load_snapshot()

        samples, snapshot = asyncio.run(scenario())

        assert len(samples) == 2
        assert session.state == SessionState.STOPPED
        assert snapshot is None


# =============================================================================
# Continuation
# =============================================================================

class TestContinueFrom:
    """Tests for seeding a session from a recovery snapshot."""

    def test_restored_buffer_kept_on_start(self, store):
        """The next start keeps restored samples and the original start time."""
        restored = [f.to_sample() for f in fixes(3)]
        snapshot = RecoverySnapshot(samples=restored, session_start_ms=T0, last_snapshot_ms=T0 + 2000)
        source = ScriptedPositioningSource([Fix(0.0001, 0.0, T0 + 120_000)])
        session = make_session(source, store, clock=lambda: T0 + 120_000)

        async def scenario():
            assert session.continue_from(snapshot)
            assert session.state == SessionState.IDLE
            await session.start()
            source.emit()
            return await session.stop()

        samples = asyncio.run(scenario())

        assert len(samples) == 4
        assert samples[:3] == restored
        assert session.started_at_ms == T0

    def test_only_from_idle(self, store):
        """An Active session cannot be reseeded."""
        source = ScriptedPositioningSource()
        session = make_session(source, store)
        snapshot = RecoverySnapshot(samples=[], session_start_ms=T0, last_snapshot_ms=T0)

        async def scenario():
            await session.start()
            restored = session.continue_from(snapshot)
            await session.stop()
            return restored

        assert not asyncio.run(scenario())
