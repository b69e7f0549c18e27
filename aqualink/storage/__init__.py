import logging
from typing import Optional

from aqualink.core.config import Settings, settings as default_settings
from aqualink.storage.base import Storage
from aqualink.storage.database import DatabaseStorage
from aqualink.storage.memory import MemStorage

logger = logging.getLogger("aqualink.storage")


def build_storage(settings: Optional[Settings] = None) -> Storage:
    """Pick the storage backend named by ``STORAGE_BACKEND``."""
    settings = settings or default_settings
    if settings.STORAGE_BACKEND == "memory":
        logger.info("Using in-memory storage")
        return MemStorage()

    logger.info("Using database storage")
    return DatabaseStorage.from_url(settings.DATABASE_URL, echo=settings.SQL_ECHO)


__all__ = ["Storage", "MemStorage", "DatabaseStorage", "build_storage"]
