"""Logging for the ``fiscal_import`` package.

What the package logs, and where:

- ``fiscal_import.parsers.dispatch``: WARNING for every file that could not be
  read (unsupported suffix, reader exception; the traceback itself is kept in
  ``ParseError.internal``, not logged), DEBUG for the number of QIF/OFX/CAMT
  rows dropped because they had no date or amount.
- ``fiscal_import.api``: WARNING when CSV columns cannot be mapped, INFO with
  the imported/skipped counts per file.

Importing the package never prints anything: until :func:`configure_logging`
runs, the ``fiscal_import`` logger only carries a ``NullHandler``. The CLI
calls :func:`configure_logging` once from its root callback; hosts embedding
the library can do the same or attach their own handlers.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "fiscal_import"
LEVEL_ENV_VAR = "FISCAL_IMPORT_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``FISCAL_IMPORT_LOG_LEVEL`` when ``None``) into a number.

    Accepts ints, numeric strings and level names in any case. Anything
    unrecognized resolves to WARNING, so row-drop DEBUG lines stay quiet.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.WARNING
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    return numeric if numeric is not None else logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach one ``StreamHandler`` to the ``fiscal_import`` logger.

    Only the first call has an effect until :func:`reset_logging` runs.

    Parameters
    ----------
    level:
        Level for the package logger; see :func:`resolve_level`. Pass
        ``"DEBUG"`` to see how many rows each structured reader dropped.
    fmt:
        Format string, defaulting to :data:`DEFAULT_FORMAT`.
    stream:
        Destination; ``sys.stderr`` at call time when omitted, so JSON printed
        by the CLI on stdout stays clean.
    """

    global _configured
    if _configured:
        return

    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _configured = True


def reset_logging() -> None:
    """Drop every package handler so :func:`configure_logging` can run again."""

    global _configured
    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _configured = False


def get_logger(name: str) -> logging.Logger:
    """Logger for a ``fiscal_import.<module>`` name.

    Adds a ``NullHandler`` to the package logger while it is unconfigured.
    """

    package = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not package.handlers:
        package.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_FORMAT",
    "LEVEL_ENV_VAR",
    "PACKAGE_LOGGER",
    "configure_logging",
    "get_logger",
    "reset_logging",
    "resolve_level",
]
