"""Logging configuration for the application."""

import logging
import sys

from app.core.config import get_settings

_NOISY_LOGGERS = ("httpx", "asyncio", "sqlalchemy.engine.Engine")


def setup_logging() -> None:
    """Configure application-wide logging.

    Level comes from settings.log_level, forced to DEBUG when settings.debug
    is True. Output goes to stdout. Chatty third-party loggers are held at
    WARNING unless debugging.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if not settings.debug:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
