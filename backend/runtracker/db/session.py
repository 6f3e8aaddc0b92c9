"""
Database Session Management

Provides the async engine and session factory.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from runtracker.config import settings


def _get_async_url(url: str) -> str:
    """Convert sync database URL to async version."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    return url


def create_engine_for(url: str) -> AsyncEngine:
    """Create an async engine with backend-appropriate pool settings."""
    async_url = _get_async_url(url)

    if async_url.startswith("sqlite"):
        return create_async_engine(
            async_url,
            connect_args={"check_same_thread": False}
        )
    elif async_url.startswith("postgresql"):
        # PostgreSQL with connection pool settings
        return create_async_engine(
            async_url,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,  # 30 minutes
        )
    return create_async_engine(async_url)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Create async engine
async_engine = create_engine_for(settings.database_url)

# Async session factory
AsyncSessionLocal = create_session_factory(async_engine)


# =============================================================================
# Initialization
# =============================================================================

async def init_db(engine: AsyncEngine = async_engine) -> None:
    """Initialize database tables."""
    from runtracker.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
