"""Logging helpers for the phylipkit command line."""

from __future__ import annotations

import logging

LOGGER_NAME = "phylipkit"


def configure_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure root logging and return the package logger.

    ``quiet`` keeps warnings and errors only; ``verbose`` wins over it.
    """

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger


def get_logger() -> logging.Logger:
    """Return the package logger."""

    return logging.getLogger(LOGGER_NAME)
