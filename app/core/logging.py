"""
Logging setup shared by the API process and the Celery workers.

Every module logs through ``logging.getLogger(__name__)``; this only
installs the root handler and format once per process.
"""

import logging
import sys

from app.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(level: str | int | None = None) -> None:
    """
    Configure the root logger with a single stdout handler.

    ``level`` defaults to ``settings.LOG_LEVEL``. Calling this more than once
    replaces the previous handler instead of stacking duplicates.
    """
    level = level or settings.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: stdout, level=%s", logging.getLevelName(level),
    )
