from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create a SQLAlchemy async engine from settings."""

    return create_async_engine(database_url or settings.database_url, echo=False, pool_pre_ping=True)


engine = create_engine()
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields one database session per request.

    Services only flush; the router that owns the request commits. A session
    closed without a commit rolls back, so a failed request never leaves a
    half-applied mutation behind.
    """

    async with SessionLocal() as session:
        yield session
