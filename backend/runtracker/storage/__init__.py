"""
Storage backends.

Usage:
    from runtracker.storage import SqlStore
    from runtracker.db.session import AsyncSessionLocal

    store = SqlStore(AsyncSessionLocal)
"""

from .base import Store
from .memory import InMemoryStore
from .sql import SqlStore
from .preferences import Preferences, load_preferences, save_preferences

__all__ = [
    "Store",
    "InMemoryStore",
    "SqlStore",
    "Preferences",
    "load_preferences",
    "save_preferences",
]
