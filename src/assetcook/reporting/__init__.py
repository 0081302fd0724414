"""Progress and message reporting backends.

``get_reporter()`` returns the process-wide backend chosen by the CLI; library
code reports through it or through ``assetcook.logging``.
"""

from .base import (
    Reporter,
    TaskRecord,
    TaskStatus,
    get_reporter,
    get_verbosity,
    section,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

BACKENDS = {
    "plain": PlainReporter,
    "rich": RichReporter,
    "json": JsonLinesReporter,
    "silent": SilentReporter,
}

__all__ = [
    "BACKENDS",
    "JsonLinesReporter",
    "PlainReporter",
    "Reporter",
    "RichReporter",
    "SilentReporter",
    "TaskRecord",
    "TaskStatus",
    "get_reporter",
    "get_verbosity",
    "section",
    "set_reporter",
    "set_verbosity",
    "task",
]
