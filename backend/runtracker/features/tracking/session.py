"""
Tracking Session

State machine owning one live recording: the raw sample buffer, the
positioning subscription, the display wake lock and the periodic
recovery snapshot.

    Idle -> Starting -> Active -> Stopped -> Idle

All mutation happens on the asyncio event loop the session was started
on. Positioning callbacks and the snapshot task are delivered through
that loop one at a time, so the buffer has a single writer and needs no
lock. Callers driving a session from other threads must hop onto the
loop first (loop.call_soon_threadsafe).
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from runtracker.config import settings
from runtracker.exceptions import SnapshotWriteError, TrackingError, UnsupportedDeviceError
from runtracker.shared.constants import SignalQuality, UnitSystem

from .positioning import (
    Fix,
    NullWakeLock,
    PositioningErrorCode,
    PositioningFailure,
    PositioningSource,
    WakeLock,
    classify_signal,
    error_for_code,
)
from .schemas import LocationSample, RecoverySnapshot

if TYPE_CHECKING:
    from runtracker.storage.base import Store

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPED = "stopped"


class SessionObserver:
    """
    Receives live session events.

    Every fix is delivered in arrival order; nothing is dropped. Subclass
    and override what you need, the defaults do nothing.
    """

    def on_sample(self, sample: LocationSample) -> None:
        pass

    def on_status(self, status: SignalQuality) -> None:
        pass

    def on_error(self, error: TrackingError) -> None:
        pass


@dataclass
class TrackingConfig:
    """Options for one start() call."""
    high_accuracy: bool = True
    units: UnitSystem = UnitSystem.METRIC
    observer: SessionObserver = field(default_factory=SessionObserver)


class TrackingSession:
    """
    One recording session.

    Filtering never happens here: every fix is buffered as delivered and
    statistics are computed from the raw buffer after stop().
    """

    def __init__(
        self,
        source: PositioningSource,
        store: "Store",
        wake_lock: Optional[WakeLock] = None,
        clock: Callable[[], int] = now_ms,
        snapshot_interval_seconds: float = settings.snapshot_interval_seconds,
        positioning_timeout_seconds: float = settings.positioning_timeout_seconds
    ):
        self.source = source
        self.store = store
        self.wake_lock = wake_lock or NullWakeLock()
        self.clock = clock
        self.snapshot_interval_seconds = snapshot_interval_seconds
        self.positioning_timeout_seconds = positioning_timeout_seconds

        self.state = SessionState.IDLE
        self.config = TrackingConfig()
        self.started_at_ms: Optional[int] = None

        self._samples: List[LocationSample] = []
        self._subscription: Optional[int] = None
        self._snapshot_task: Optional[asyncio.Task] = None
        self._wake_lock_held = False
        self._pending_release: Optional[asyncio.Task] = None
        self._restored = False
        self._interrupted = False

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def samples(self) -> List[LocationSample]:
        """Copy of the buffer in arrival order."""
        return list(self._samples)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def is_tracking(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def units(self) -> UnitSystem:
        return self.config.units

    @property
    def high_accuracy(self) -> bool:
        return self.config.high_accuracy

    def elapsed_seconds(self, at_ms: Optional[int] = None) -> int:
        """Wall-clock seconds since the session started (0 before start)."""
        if self.started_at_ms is None:
            return 0
        at_ms = self.clock() if at_ms is None else at_ms
        return max(0, (at_ms - self.started_at_ms) // 1000)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, config: Optional[TrackingConfig] = None) -> None:
        """
        Begin recording.

        Calling start while Starting or Active does nothing. A buffer seeded
        by continue_from() is kept; otherwise the buffer is cleared.

        Raises:
            UnsupportedDeviceError: No positioning capability
            PermissionDeniedError, PositionUnavailableError,
            PositioningTimeoutError: Permission request failed; the session
                is back to Idle with an empty buffer
            Exception: Whatever source.subscribe() raised, after the
                session has released the wake lock and returned to Idle
        """
        if self.state in (SessionState.STARTING, SessionState.ACTIVE):
            logger.warning(f"Session already {self.state.value}, ignoring start")
            return

        if not self.source.is_available():
            raise UnsupportedDeviceError()

        await self._await_pending_release()

        self.config = config or TrackingConfig()
        self.state = SessionState.STARTING
        self._interrupted = False

        try:
            await self.source.request_permission(
                self.config.high_accuracy,
                self.positioning_timeout_seconds
            )
        except TrackingError as e:
            logger.warning(f"Permission request failed: {e}")
            self._discard()
            raise

        if self._restored:
            logger.info(f"Continuing session with {len(self._samples)} restored samples")
        else:
            self._samples = []
            self.started_at_ms = self.clock()
        self._restored = False

        await self._acquire_wake_lock()

        # Active before subscribing: a source may deliver during subscribe()
        self.state = SessionState.ACTIVE
        try:
            self._subscription = self.source.subscribe(
                self._handle_fix,
                self._handle_failure,
                self.config.high_accuracy
            )
        except Exception as e:
            logger.error(f"Failed to subscribe to positioning updates: {e}")
            self._release_scoped_resources()
            await self._release_wake_lock()
            self._discard()
            raise

        if self.state != SessionState.ACTIVE:
            # interrupted while subscribing
            self._release_scoped_resources()
            return

        self._snapshot_task = asyncio.create_task(self._snapshot_loop())
        logger.info(f"Tracking started (high_accuracy={self.config.high_accuracy})")

    async def stop(self) -> List[LocationSample]:
        """
        Stop recording and return the buffer.

        Cancels positioning updates and the snapshot timer, clears the
        saved snapshot and releases the wake lock. When not Active the
        existing buffer is returned unchanged.
        """
        if self.state != SessionState.ACTIVE:
            logger.warning(f"Session is {self.state.value}, nothing to stop")
            await self._await_pending_release()
            if self._interrupted:
                # buffer has now been handed to the caller
                await self._clear_snapshot()
                self._interrupted = False
            return self.samples

        snapshot_task = self._release_scoped_resources()
        if snapshot_task is not None:
            try:
                await snapshot_task
            except asyncio.CancelledError:
                pass

        await self._clear_snapshot()
        await self._release_wake_lock()

        self.state = SessionState.STOPPED
        logger.info(f"Tracking stopped with {len(self._samples)} samples")
        return self.samples

    def reset(self) -> None:
        """Return a stopped session to Idle, dropping its buffer."""
        if self.state in (SessionState.STARTING, SessionState.ACTIVE):
            logger.warning(f"Cannot reset a {self.state.value} session")
            return
        self._discard()

    def reset_samples(self) -> None:
        """Clear the buffer without stopping."""
        self._samples = []
        logger.info("Session samples reset")

    def continue_from(self, snapshot: RecoverySnapshot) -> bool:
        """
        Seed an idle session from a recovery snapshot.

        The snapshot restores history, not the live source: the session
        becomes Active only on the next start().

        Returns:
            False when the session is not Idle
        """
        if self.state != SessionState.IDLE:
            logger.warning(f"Cannot restore into a {self.state.value} session")
            return False

        self._samples = list(snapshot.samples)
        self.started_at_ms = snapshot.session_start_ms
        self._restored = True
        logger.info(f"Session restored with {len(self._samples)} samples")
        return True

    # =========================================================================
    # Positioning callbacks
    # =========================================================================

    def _handle_fix(self, fix: Fix) -> None:
        if self.state != SessionState.ACTIVE:
            logger.debug("Fix received while not active, ignoring")
            return

        sample = fix.to_sample()
        self.config.observer.on_status(classify_signal(sample.accuracy_m))
        self._samples.append(sample)

        logger.debug(
            f"Sample {len(self._samples)}: lat={sample.latitude:.6f}, "
            f"lon={sample.longitude:.6f}, acc={sample.accuracy_m}"
        )
        self.config.observer.on_sample(sample)

    def _handle_failure(self, failure: PositioningFailure) -> None:
        if self.state != SessionState.ACTIVE:
            return

        error = error_for_code(failure.code, failure.message)
        logger.error(f"Positioning error: {failure.code.value}")
        self.config.observer.on_error(error)

        if failure.code is PositioningErrorCode.PERMISSION_DENIED:
            self._interrupt()

    def _interrupt(self) -> None:
        """Tear down after an unrecoverable positioning error."""
        self._release_scoped_resources()
        if self._wake_lock_held:
            self._pending_release = asyncio.get_running_loop().create_task(
                self._release_wake_lock()
            )

        self.state = SessionState.STOPPED
        self._interrupted = True
        logger.warning(
            f"Tracking interrupted with {len(self._samples)} samples; "
            "snapshot kept for recovery"
        )

    # =========================================================================
    # Snapshots
    # =========================================================================

    async def write_snapshot(self) -> bool:
        """
        Persist the current buffer for crash recovery.

        Never raises: a failed write is logged and recording continues.

        Returns:
            True if a snapshot was written
        """
        if not self._samples:
            return False

        samples = list(self._samples)
        snapshot = RecoverySnapshot(
            samples=samples,
            session_start_ms=samples[0].timestamp_ms,
            last_snapshot_ms=self.clock(),
        )

        try:
            await self._persist_snapshot(snapshot)
        except SnapshotWriteError as e:
            logger.warning(str(e))
            return False

        logger.debug(f"Snapshot saved ({len(samples)} samples)")
        return True

    async def _persist_snapshot(self, snapshot: RecoverySnapshot) -> None:
        try:
            await self.store.save_snapshot(snapshot)
        except Exception as e:
            raise SnapshotWriteError(
                f"Snapshot of {snapshot.sample_count} samples failed: {e}"
            ) from e

    async def _snapshot_loop(self) -> None:
        while True:
            await asyncio.sleep(self.snapshot_interval_seconds)
            await self.write_snapshot()

    async def _clear_snapshot(self) -> None:
        try:
            await self.store.clear_snapshot()
        except Exception as e:
            logger.warning(f"Failed to clear recovery snapshot: {e}")

    # =========================================================================
    # Resources
    # =========================================================================

    def _release_scoped_resources(self) -> Optional[asyncio.Task]:
        """Cancel the subscription and snapshot timer tied to Active."""
        if self._subscription is not None:
            self.source.cancel(self._subscription)
            self._subscription = None

        task, self._snapshot_task = self._snapshot_task, None
        if task is not None:
            task.cancel()
        return task

    async def _acquire_wake_lock(self) -> None:
        try:
            self._wake_lock_held = await self.wake_lock.acquire()
        except Exception as e:
            logger.warning(f"Wake lock unavailable: {e}")
            self._wake_lock_held = False

        if not self._wake_lock_held:
            logger.info("Display may sleep during this session")

    async def _release_wake_lock(self) -> None:
        if not self._wake_lock_held:
            return
        try:
            await self.wake_lock.release()
        except Exception as e:
            logger.warning(f"Failed to release wake lock: {e}")
        self._wake_lock_held = False

    async def _await_pending_release(self) -> None:
        task, self._pending_release = self._pending_release, None
        if task is not None:
            await task

    def _discard(self) -> None:
        self.state = SessionState.IDLE
        self._samples = []
        self.started_at_ms = None
        self._restored = False
        self._interrupted = False
