"""
Logging setup for the field_geometry package.

All package modules log under the ``field_geometry`` logger. This module
attaches its handlers and routes numpy floating-point errors raised inside
geometry stages to the same log instead of loose ``RuntimeWarning``s.
"""

import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np

PACKAGE_LOGGER = "field_geometry"
LOG_LEVEL_ENV = "FIELD_GEOMETRY_LOG_LEVEL"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SIMPLE_FORMAT = "%(levelname)s: %(message)s"

_VERBOSITY_LEVELS = {1: logging.DEBUG, 0: logging.INFO, -1: logging.WARNING}


def _level_for(verbosity: int) -> int:
    env_level = os.environ.get(LOG_LEVEL_ENV, "").upper()
    if env_level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        return getattr(logging, env_level)
    if verbosity >= 1:
        return logging.DEBUG
    return _VERBOSITY_LEVELS.get(verbosity, logging.ERROR)


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Configure the ``field_geometry`` logger.

    Args:
        verbosity: 1 or more for DEBUG, 0 for INFO, -1 for WARNING, lower for ERROR
        log_file: Optional file that receives every record at DEBUG level
        format_string: Console format; quiet runs default to a short format

    Environment Variables:
        FIELD_GEOMETRY_LOG_LEVEL: Overrides the verbosity-derived level

    Example:
        >>> setup_logging(verbosity=1)
        >>> setup_logging(log_file="geometry.log")
    """
    level = _level_for(verbosity)
    if format_string is None:
        format_string = DEFAULT_FORMAT if verbosity >= 0 else SIMPLE_FORMAT

    # Third-party libraries stay at WARNING
    logging.root.setLevel(logging.WARNING)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(format_string))
    logger.addHandler(console)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a")
        except OSError as e:
            logger.warning(f"Failed to create log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    logger.debug(f"Logging configured: level={logging.getLevelName(level)}")


@contextmanager
def log_float_errors(logger: logging.Logger, stage: str) -> Iterator[None]:
    """
    Report numpy floating-point errors in a block through ``logger``.

    Errors are logged once per kind at WARNING and do not interrupt the
    computation. The numpy error state is restored on exit.

    Example:
        >>> with log_float_errors(logger, "mesh skeleton"):
        ...     areas = quad_cell_areas(x, y)
    """
    seen = set()

    def report(kind: str, flag: int) -> None:
        if kind not in seen:
            seen.add(kind)
            logger.warning(f"Floating-point {kind} during {stage}")

    with np.errstate(call=report, divide="call", invalid="call", over="call"):
        yield
