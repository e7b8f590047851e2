# logging_config.py
import logging
import sys

from pythonjsonlogger import jsonlogger

from eventsync.config import LOG_JSON, LOG_LEVEL

LOGGER_NAME = "eventsync"


def get_formatter(use_json: bool) -> logging.Formatter:
    if use_json:
        return jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level"},
        )
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(level: str = LOG_LEVEL, use_json: bool = LOG_JSON) -> logging.Logger:
    """Attach a stdout handler to the package logger; modules log via getLogger(__name__)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Clear old handlers so reloads don't double log
    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(get_formatter(use_json))
    logger.addHandler(handler)
    return logger
