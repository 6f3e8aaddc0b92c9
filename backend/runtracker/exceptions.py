"""
Exception hierarchy for RunTracker.

Tracking errors carry a message suitable for showing to the user.
"""


class RunTrackerError(Exception):
    """Base RunTracker error."""
    pass


# =============================================================================
# Tracking
# =============================================================================

class TrackingError(RunTrackerError):
    """Session could not start or lost its positioning source."""

    user_message = "Could not access location"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class UnsupportedDeviceError(TrackingError):
    """No positioning capability on this device."""

    user_message = "Location is not available on this device"


class PermissionDeniedError(TrackingError):
    """User refused location access."""

    user_message = "Location permission denied. Allow location access in settings."


class PositionUnavailableError(TrackingError):
    """Positioning hardware could not produce a fix."""

    user_message = "Position unavailable. Make sure GPS is enabled."


class PositioningTimeoutError(TrackingError):
    """Positioning source did not answer in time."""

    user_message = "Location request timed out. Try again."


class SnapshotWriteError(RunTrackerError):
    """Recovery snapshot could not be persisted."""
    pass


# =============================================================================
# Persistence / records
# =============================================================================

class StorageError(RunTrackerError):
    """Persistence layer failure."""
    pass


class RunNotFoundError(RunTrackerError):
    """No run stored under the given id."""

    def __init__(self, run_id: str):
        super().__init__(f"Run {run_id} not found")
        self.run_id = run_id


class RunAlreadySavedError(RunTrackerError):
    """Run record was already persisted and can no longer be edited."""
    pass


class EmptyRouteError(RunTrackerError):
    """Run has no route points to export."""
    pass


class InvalidTrackError(RunTrackerError):
    """Track file could not be parsed."""
    pass
