"""
Shared route dependencies.
"""

from runtracker.db.session import AsyncSessionLocal
from runtracker.storage import SqlStore, Store


async def get_store() -> Store:
    """Dependency for getting the persistence collaborator."""
    return SqlStore(AsyncSessionLocal)
