"""Logging setup for the propfill namespace."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO, log_file: str | None = None) -> None:
    """Configure the ``propfill`` logger.

    The TUI owns the terminal, so records only go to *log_file*. Without
    one the logger gets a NullHandler and nothing reaches stderr.
    """
    logger = logging.getLogger("propfill")
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate handlers when called twice
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    if not log_file:
        logger.addHandler(logging.NullHandler())
        return

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(file_handler)
    logger.info("Logging initialized.")
