import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.models import Base
from app.db.session import engine

logger = logging.getLogger(__name__)


async def init_models(db_engine: AsyncEngine, *, drop_existing: bool = False) -> None:
    """Create database tables, optionally dropping the existing schema first."""

    async with db_engine.begin() as conn:
        if drop_existing:
            logger.warning("Dropping existing tables", extra={"url": str(db_engine.url)})
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _main(drop_existing: bool) -> None:
    try:
        await init_models(engine, drop_existing=drop_existing)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main(drop_existing="--reset" in sys.argv[1:]))
