"""
Setting and recovery snapshot models.

Small key/value preferences and the single in-progress session snapshot.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, BigInteger, JSON

from runtracker.models.base import Base


class Setting(Base):
    """One user preference (units, GPS accuracy, ...)."""

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Setting {self.key}={self.value!r}>"


class RecoverySnapshotRow(Base):
    """
    Periodic copy of an active session.

    At most one row exists (id 1); every write replaces it.
    """

    __tablename__ = "recovery_snapshots"

    SINGLETON_ID = 1

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    samples = Column(JSON, nullable=False, default=list)
    session_start_ms = Column(BigInteger, nullable=False)
    last_snapshot_ms = Column(BigInteger, nullable=False)

    def __repr__(self):
        return f"<RecoverySnapshot {len(self.samples or [])} samples>"
