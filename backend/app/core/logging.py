"""
logging.py — Application-Wide Logging Configuration

Purpose:
- Configure a standardized logging format for the entire backend.
- Keep API requests and recalculation runs on the same format so a run can be
  followed from the router down to each projection stage.

Format: timestamp | level | module | message
"""

import logging
from typing import Optional

# -----------------------------------------------------------------------------
# Log Format
# -----------------------------------------------------------------------------

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Held at WARNING unless the app itself runs at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "multipart")

# -----------------------------------------------------------------------------
# Root Logger Initialization
# -----------------------------------------------------------------------------

def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging settings.

    Parameters:
        level (str): "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL".
            Defaults to settings.LOG_LEVEL.

    Should be called ONCE, typically in `main.py` at app startup.
    """
    if level is None:
        from app.core.config import settings
        level = settings.LOG_LEVEL

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    if numeric_level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging initialized with level %s", level)

# -----------------------------------------------------------------------------
# Logger Access Helper
# -----------------------------------------------------------------------------

def get_logger(name: str) -> logging.Logger:
    """
    Return a logger instance to be used in any module.

    Usage:
        logger = get_logger(__name__)
        logger.debug("Balance sheet projected for %d years", n)
    """
    return logging.getLogger(name)
