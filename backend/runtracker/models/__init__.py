"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy.
"""

from runtracker.models.base import Base
from runtracker.models.run import Run
from runtracker.models.setting import Setting, RecoverySnapshotRow

__all__ = [
    "Base",
    "Run",
    "Setting",
    "RecoverySnapshotRow",
]
