"""Logging for gltfkun.

Records from the ``gltfkun`` logger tree are rendered by the active
reporter, so warnings from extension hooks and importer notices appear
interleaved with task summaries in whichever backend the CLI selected.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from .reporting import get_reporter, get_verbosity

_ROOT = "gltfkun"

__all__ = ["get_logger", "configure_logging", "section", "step"]


class _ReporterHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            get_reporter().log(record.levelno, self.format(record))
        except Exception:
            self.handleError(record)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(verbosity: int = 0) -> None:
    """Install the reporter handler on the package logger.

    Verbosity 0 shows warnings and errors, 1 adds info, 2+ adds debug.
    """
    levels = (logging.WARNING, logging.INFO, logging.DEBUG)
    logger = get_logger()
    logger.setLevel(levels[min(verbosity, 2)])
    for handler in list(logger.handlers):
        if isinstance(handler, _ReporterHandler):
            logger.removeHandler(handler)
    handler = _ReporterHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def step(message: str) -> None:
    """Announce a CLI step regardless of verbosity."""
    get_reporter().status(f"  -> {message}")


@contextmanager
def section(title: str) -> Iterator[logging.Logger]:
    """Open a titled block in the reporter output; yields the package logger."""
    logger = get_logger()
    get_reporter().section(title)
    try:
        yield logger
    finally:
        if get_verbosity() >= 2:
            logger.debug("end section: %s", title)
