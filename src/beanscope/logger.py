"""
Logging setup for beanscope.

Thin wrapper around loguru so modules can do:

    from beanscope.logger import get_logger
    logger = get_logger(__name__)
"""

import os
import sys

from loguru import logger as _logger

_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_logger.configure(extra={"name": "beanscope"})


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure the global loguru sinks.

    Args:
        level: Minimum level for console (and file) output.
        log_file: Optional path of a rotating log file.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    _logger.remove()
    _logger.add(sys.stderr, level=level, format=_FORMAT, backtrace=False)

    if log_file:
        _logger.add(
            log_file,
            level=level,
            format=_FORMAT,
            rotation="10 MB",
            retention=3,
            enqueue=True,
        )


def get_logger(name: str):
    """Return a logger bound to the given module name."""
    return _logger.bind(name=name)
