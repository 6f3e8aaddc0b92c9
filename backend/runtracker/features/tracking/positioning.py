"""
Positioning source interface.

The device's location capability is injected into a TrackingSession
rather than detected globally, so sessions can run against a real
source, a replayed GPX file, or a scripted fake in tests.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from itertools import count
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from runtracker.exceptions import (
    PermissionDeniedError,
    PositioningTimeoutError,
    PositionUnavailableError,
    TrackingError,
)
from runtracker.shared.constants import (
    GOOD_SIGNAL_ACCURACY_M,
    MEDIUM_SIGNAL_ACCURACY_M,
    SignalQuality,
)

from .schemas import LocationSample

logger = logging.getLogger(__name__)


class PositioningErrorCode(str, Enum):
    """Failure codes a positioning source may report."""
    PERMISSION_DENIED = "permission-denied"
    POSITION_UNAVAILABLE = "position-unavailable"
    TIMEOUT = "timeout"


_ERRORS_BY_CODE: Dict[PositioningErrorCode, type[TrackingError]] = {
    PositioningErrorCode.PERMISSION_DENIED: PermissionDeniedError,
    PositioningErrorCode.POSITION_UNAVAILABLE: PositionUnavailableError,
    PositioningErrorCode.TIMEOUT: PositioningTimeoutError,
}


def error_for_code(code: PositioningErrorCode, message: Optional[str] = None) -> TrackingError:
    """Map a source failure code to the matching tracking exception."""
    return _ERRORS_BY_CODE[code](message)


@dataclass(frozen=True)
class Fix:
    """One raw report from a positioning source."""
    latitude: float
    longitude: float
    timestamp: int  # epoch ms
    altitude: Optional[float] = None
    accuracy: Optional[float] = None

    def to_sample(self) -> LocationSample:
        return LocationSample(
            latitude=self.latitude,
            longitude=self.longitude,
            altitude_m=self.altitude,
            accuracy_m=self.accuracy,
            timestamp_ms=self.timestamp,
        )


@dataclass(frozen=True)
class PositioningFailure:
    """Typed failure delivered by a subscription."""
    code: PositioningErrorCode
    message: Optional[str] = None


FixCallback = Callable[[Fix], None]
FailureCallback = Callable[[PositioningFailure], None]


def classify_signal(accuracy_m: Optional[float]) -> SignalQuality:
    """
    Classify instantaneous signal quality from reported accuracy.

    good <= 10 m, medium <= 30 m, poor beyond, unknown when not reported.
    """
    if not accuracy_m:
        return SignalQuality.UNKNOWN
    if accuracy_m <= GOOD_SIGNAL_ACCURACY_M:
        return SignalQuality.GOOD
    if accuracy_m <= MEDIUM_SIGNAL_ACCURACY_M:
        return SignalQuality.MEDIUM
    return SignalQuality.POOR


class PositioningSource(ABC):
    """External location capability (not owned by the core)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the device has any positioning capability."""
        pass

    @abstractmethod
    async def request_permission(self, high_accuracy: bool, timeout_seconds: float) -> None:
        """
        One-shot permission request.

        Raises:
            PermissionDeniedError, PositionUnavailableError,
            PositioningTimeoutError: Mapped from the source's failure code
        """
        pass

    @abstractmethod
    def subscribe(
        self,
        on_fix: FixCallback,
        on_error: FailureCallback,
        high_accuracy: bool = True
    ) -> int:
        """Begin continuous updates; returns a handle for cancel()."""
        pass

    @abstractmethod
    def cancel(self, handle: int) -> None:
        pass


class WakeLock(ABC):
    """Keeps the display awake during a session (best-effort)."""

    @abstractmethod
    async def acquire(self) -> bool:
        """Return True if the lock was obtained."""
        pass

    @abstractmethod
    async def release(self) -> None:
        pass


class NullWakeLock(WakeLock):
    """Wake lock for devices without one; never obtained."""

    async def acquire(self) -> bool:
        return False

    async def release(self) -> None:
        return None


ScriptEvent = Union[Fix, PositioningFailure]


class ScriptedPositioningSource(PositioningSource):
    """
    Positioning source replaying a scripted sequence.

    Events are delivered only when emit()/emit_all() is called, in order,
    to every live subscription.
    """

    def __init__(
        self,
        events: Iterable[ScriptEvent] = (),
        available: bool = True,
        permission_error: Optional[PositioningErrorCode] = None
    ):
        self.available = available
        self.permission_error = permission_error
        self.pending: List[ScriptEvent] = list(events)
        self.permission_requests: List[Tuple[bool, float]] = []
        self._subscriptions: Dict[int, Tuple[FixCallback, FailureCallback]] = {}
        self._handles = count(1)

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscriptions)

    def is_available(self) -> bool:
        return self.available

    async def request_permission(self, high_accuracy: bool, timeout_seconds: float) -> None:
        self.permission_requests.append((high_accuracy, timeout_seconds))
        if self.permission_error is not None:
            raise error_for_code(self.permission_error)

    def subscribe(
        self,
        on_fix: FixCallback,
        on_error: FailureCallback,
        high_accuracy: bool = True
    ) -> int:
        handle = next(self._handles)
        self._subscriptions[handle] = (on_fix, on_error)
        return handle

    def cancel(self, handle: int) -> None:
        self._subscriptions.pop(handle, None)

    def emit(self, event: Optional[ScriptEvent] = None) -> bool:
        """
        Deliver one event (the given one, or the next scripted one).

        Returns:
            False when nothing was left to deliver
        """
        if event is None:
            if not self.pending:
                return False
            event = self.pending.pop(0)

        for on_fix, on_error in list(self._subscriptions.values()):
            if isinstance(event, PositioningFailure):
                on_error(event)
            else:
                on_fix(event)
        return True

    def emit_all(self) -> int:
        """Deliver every remaining scripted event; returns how many."""
        delivered = 0
        while self.emit():
            delivered += 1
        return delivered
