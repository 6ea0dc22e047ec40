"""Overlay Query logger module."""

import logging
import sys

LOGGER_NAME = "overlay_query"
LOG_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s][%(filename)s:%(lineno)d] %(message)s"


class OverlayLogger(object):
    """Process-wide logger.

    ``OverlayLogger()`` always returns the same configured ``logging.Logger``.
    """

    _instance = None

    @classmethod
    def _build_logger(cls, level="INFO"):
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(level)
        if not logger.handlers:
            handler = logging.StreamHandler(stream=sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        logger.propagate = False
        return logger

    def __new__(cls, *args, **kwargs) -> logging.Logger:
        """Return the shared logger, building it on first use."""
        if cls._instance is None:
            cls._instance = cls._build_logger()
        return cls._instance

    @classmethod
    def set_level(cls, level: str):
        """Change the level of the shared logger."""
        OverlayLogger().setLevel(level.upper())
