"""
Tracking feature: live recording sessions and crash recovery.
"""

from .schemas import LocationSample, RecoverySnapshot
from .positioning import (
    Fix,
    PositioningErrorCode,
    PositioningFailure,
    PositioningSource,
    ScriptedPositioningSource,
    WakeLock,
    NullWakeLock,
    classify_signal,
)
from .session import (
    SessionObserver,
    SessionState,
    TrackingConfig,
    TrackingSession,
)
from .recovery import RecoveryOffer, RecoveryService, RecoveryStatus

__all__ = [
    "LocationSample",
    "RecoverySnapshot",
    "Fix",
    "PositioningErrorCode",
    "PositioningFailure",
    "PositioningSource",
    "ScriptedPositioningSource",
    "WakeLock",
    "NullWakeLock",
    "classify_signal",
    "SessionObserver",
    "SessionState",
    "TrackingConfig",
    "TrackingSession",
    "RecoveryOffer",
    "RecoveryService",
    "RecoveryStatus",
]
