# app/middlewares/logging.py

import logging
import sys
from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# chatty libraries kept at WARNING unless we run at DEBUG
_NOISY_LOGGERS = ("aiohttp.access", "sqlalchemy.engine", "asyncio")


def setup_logging(level: str | None = None):
    logger = logging.getLogger()
    resolved = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logger.setLevel(resolved)
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if resolved > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"✅ Logging system initialized ({logging.getLevelName(resolved)})")
