"""Logging for ``household_ledger``.

The CLI calls :func:`configure_logging` once; library modules only call
:func:`get_logger` and never attach handlers. Ingestion logs are
``key=value`` messages (detection result, persisted counts, link counts) so
they grep well in a host application's log.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "household_ledger"
_LEVEL_ENV = "HOUSEHOLD_LEDGER_LOG_LEVEL"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_env() -> int:
    raw = (os.getenv(_LEVEL_ENV) or "").strip().upper()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelNamesMapping().get(raw)
    return level if level is not None else logging.INFO


def configure_logging(level: int | None = None, *, stream: IO[str] = sys.stderr) -> None:
    """Attach one stderr handler to the package logger; later calls are no-ops.

    ``level`` defaults to ``HOUSEHOLD_LEDGER_LOG_LEVEL`` (a level name or
    number), else INFO.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = level if level is not None else _level_from_env()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
