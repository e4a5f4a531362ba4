"""Console logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO for day to day operation.
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "uvicorn.access",
    "httpx",
)


def configure_logging(level: str | int = "info") -> logging.Logger:
    """Install a single console handler on the package logger.

    Calling this more than once replaces the previous handler instead of
    stacking duplicates, so the CLI and the app factory can both call it.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("resource_ledger")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_resource_ledger", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler._resource_ledger = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
