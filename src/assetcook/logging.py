"""Package logger wired to the reporter layer.

Importers and the registry log through ``get_logger()`` with ordinary
``logging`` calls. After ``configure_logging`` the records end up on the
active reporter, so ``--reporter json`` also captures importer warnings.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from .reporting import get_reporter, get_verbosity

__all__ = ["LOGGER_NAME", "get_logger", "configure_logging", "section", "step"]

LOGGER_NAME = "assetcook"


class ReporterHandler(logging.Handler):
    """Route a record to the reporter method matching its level."""

    def emit(self, record: logging.LogRecord) -> None:
        text = self.format(record)
        rep = get_reporter()
        if record.levelno >= logging.ERROR:
            rep.error(text)
        elif record.levelno >= logging.WARNING:
            rep.warning(text)
        elif record.levelno >= logging.INFO:
            rep.status(text)
        else:
            rep.verbose(text, level=1)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def configure_logging(verbosity: int = 0) -> logging.Logger:
    """Install the reporter handler on the package logger (idempotent)."""
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbosity > 0 else logging.INFO)
    for existing in [h for h in logger.handlers if isinstance(h, ReporterHandler)]:
        logger.removeHandler(existing)
    handler = ReporterHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def step(message: str) -> None:
    """Announce a top-level CLI step."""
    get_reporter().status(f"  -> {message}")


@contextmanager
def section(title: str) -> Iterator[logging.Logger]:
    get_reporter().section(title)
    logger = get_logger()
    yield logger
    if get_verbosity() >= 2:
        logger.debug("leaving section %s", title)
