"""Logging configuration helpers."""

import logging

_LOGGER_NAME = "handover_return"


def configure_logging(level: str = "INFO") -> None:
    """Configure the service logger with a single stream handler."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.getLevelName(level.upper()))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
