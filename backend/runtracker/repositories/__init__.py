"""
Data access layer.
"""

from .settings import SettingRepository, SnapshotRepository

__all__ = ["SettingRepository", "SnapshotRepository"]
