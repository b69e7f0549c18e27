import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from aqualink.db.base_class import Base
from aqualink import models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger("aqualink.db")


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables initialized")
