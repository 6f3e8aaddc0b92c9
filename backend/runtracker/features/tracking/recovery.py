"""
Recovery Protocol

Runs once at application start: inspects the last recovery snapshot and
decides whether an unfinished session can be offered for resumption.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from runtracker.config import settings

from .schemas import RecoverySnapshot
from .session import TrackingSession, now_ms

if TYPE_CHECKING:
    from runtracker.storage.base import Store

logger = logging.getLogger(__name__)

MS_PER_HOUR = 60 * 60 * 1000


class RecoveryStatus(str, Enum):
    """Outcome of inspecting the stored snapshot."""
    NONE = "none"                  # nothing stored
    INSUFFICIENT = "insufficient"  # too few samples to be worth resuming
    EXPIRED = "expired"            # stale snapshot discarded
    AVAILABLE = "available"        # offer resumption to the user


@dataclass(frozen=True)
class RecoveryOffer:
    status: RecoveryStatus
    snapshot: Optional[RecoverySnapshot] = None

    @property
    def is_available(self) -> bool:
        return self.status == RecoveryStatus.AVAILABLE

    @property
    def sample_count(self) -> int:
        return self.snapshot.sample_count if self.snapshot else 0


class RecoveryService:
    """
    Decides whether an interrupted session may be resumed.

    Usage:
        offer = await recovery.check()
        if offer.is_available and user_confirms(offer.sample_count):
            await recovery.accept(offer, session)
            await session.start(config)
        elif offer.is_available:
            await recovery.decline()
    """

    def __init__(
        self,
        store: "Store",
        clock: Callable[[], int] = now_ms,
        max_age_hours: float = settings.snapshot_max_age_hours,
        min_samples: int = settings.min_recoverable_samples
    ):
        self.store = store
        self.clock = clock
        self.max_age_hours = max_age_hours
        self.min_samples = min_samples

    async def check(self) -> RecoveryOffer:
        """
        Inspect the stored snapshot.

        Expired snapshots are cleared here and never offered. Snapshots
        with min_samples samples or fewer are left alone but not offered.
        """
        snapshot = await self.store.load_snapshot()
        if snapshot is None or not snapshot.samples:
            return RecoveryOffer(RecoveryStatus.NONE)

        age_ms = self.clock() - snapshot.last_snapshot_ms
        if age_ms > self.max_age_hours * MS_PER_HOUR:
            logger.info(
                f"Discarding stale snapshot ({age_ms / MS_PER_HOUR:.1f} h old, "
                f"{snapshot.sample_count} samples)"
            )
            await self.store.clear_snapshot()
            return RecoveryOffer(RecoveryStatus.EXPIRED)

        if snapshot.sample_count <= self.min_samples:
            return RecoveryOffer(RecoveryStatus.INSUFFICIENT, snapshot)

        logger.info(f"Found unfinished session with {snapshot.sample_count} samples")
        return RecoveryOffer(RecoveryStatus.AVAILABLE, snapshot)

    async def accept(self, offer: RecoveryOffer, session: TrackingSession) -> bool:
        """
        Seed a session with the offered history.

        The snapshot stays stored until the resumed session stops cleanly,
        so a second crash before then is still recoverable.
        """
        if not offer.is_available:
            logger.warning(f"Cannot accept recovery offer with status {offer.status.value}")
            return False
        return session.continue_from(offer.snapshot)

    async def decline(self) -> None:
        """Discard the stored snapshot."""
        await self.store.clear_snapshot()
        logger.info("Recovery declined, snapshot cleared")
