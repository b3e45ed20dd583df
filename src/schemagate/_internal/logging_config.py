"""Logging configuration for the schemagate CLI."""

import logging
import sys


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Setup basic logging on stderr and return the package logger.

    stdout carries only the rendered report.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )
    logger = logging.getLogger("schemagate")
    logger.setLevel(level)
    return logger


def level_for(verbose: bool = False, quiet: bool = False) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING
