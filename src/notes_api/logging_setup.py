from __future__ import annotations

import logging
import sys

LOGGER_NAME = "notes_api"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a stdout handler to the package logger. Safe to call more than once;
    later calls only adjust the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    logger.debug("Logging initialized. level=%s", level)
    return logger
