"""Logging setup for the ci command-line tool."""

import logging
import sys

PACKAGE_LOGGER = "collaborative_intelligence"


def configure_logging(log_level: str) -> None:
    """Configure the package logger to write diagnostics to stderr.

    Args:
        log_level: Log level name (DEBUG, INFO, WARNING, ERROR).
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    ci_logger = logging.getLogger(PACKAGE_LOGGER)
    ci_logger.setLevel(level)

    # Prevent duplicates through the root logger
    ci_logger.propagate = False

    # Clear any existing handlers to avoid duplicates when reconfigured
    ci_logger.handlers.clear()

    if level == logging.DEBUG:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        formatter = logging.Formatter("[%(levelname)s] %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    ci_logger.addHandler(handler)
