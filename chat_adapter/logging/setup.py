"""Logging configuration for the adapter."""

import logging
import sys

LOGGER_NAME = "chat-adapter"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Set up the adapter logger with a stdout handler.

    Args:
        level: Level name such as "INFO" or "DEBUG". Unknown names fall back
            to INFO.
    """
    log_level = logging.getLevelName(str(level).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(console_handler)

    # Propagate so pytest's caplog and the root logger still see records
    logger.propagate = True

    return logger
