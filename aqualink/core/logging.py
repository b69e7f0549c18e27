import logging
from typing import Optional

from aqualink.core.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the ``aqualink`` logger tree once: console output, plus a log
    file when ``LOG_FILE`` is set.
    """
    settings = settings or default_settings
    logger = logging.getLogger("aqualink")
    logger.setLevel(settings.LOG_LEVEL.upper())

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
        if settings.LOG_FILE:
            file_handler = logging.FileHandler(settings.LOG_FILE)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
    return logger
