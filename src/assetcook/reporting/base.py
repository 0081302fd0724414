"""Reporter core shared by every output backend.

A reporter keeps the book of running tasks itself; backends only render.
They override the ``_on_*`` hooks, each of which receives the up to date
``TaskRecord`` or message. Verbose messages are dropped here when the
global verbosity is below their level, so backends never see them.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "STAT_KEYS",
    "format_task_line",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "section",
    "task",
]


class TaskStatus(Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def icon(self) -> str:
        return {"success": "✔", "failed": "✖", "skipped": "→"}.get(self.value, "?")


# Cook counters shown on completion lines, in this order.
STAT_KEYS = ("assets", "cooked", "failed", "bytes")


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    started: float = field(default_factory=time.monotonic)
    finished: Optional[float] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return 0.0 if self.finished is None else self.finished - self.started

    def progress_text(self) -> str:
        return f"{self.completed}/{'?' if self.total is None else self.total}"

    def stats(self) -> str:
        return " ".join(f"{k}={self.meta[k]}" for k in STAT_KEYS if k in self.meta)


def format_task_line(rec: TaskRecord) -> str:
    """``✔ Cook assets 3/3 (0.02s) [assets=3 ...]`` for a finished task."""
    parts = [rec.status.icon, rec.name]
    if rec.total is not None:
        parts.append(rec.progress_text())
    parts.append(f"({rec.duration:.2f}s)")
    stats = rec.stats()
    if stats:
        parts.append(f"[{stats}]")
    return " ".join(parts)


_verbosity = 0


def set_verbosity(level: int) -> None:
    global _verbosity
    _verbosity = level if level > 0 else 0


def get_verbosity() -> int:
    return _verbosity


class Reporter:
    """Task bookkeeping plus level dispatch; the base class renders nothing."""

    supports_progress = False

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskRecord] = {}

    # Task API -------------------------------------------------------------
    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        rec = TaskRecord(task_id, name, total, meta=dict(meta))
        self._tasks[task_id] = rec
        self._on_task_start(rec)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        rec.meta.update(meta)
        self._on_task_advance(rec, meta)

    def end_task(
        self, task_id: str, status: TaskStatus = TaskStatus.SUCCESS, **final_meta: Any
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.status = status
        rec.finished = time.monotonic()
        rec.meta.update(final_meta)
        self._on_task_end(rec)

    # Messages -------------------------------------------------------------
    def status(self, message: str, **fields: Any) -> None:
        self._on_message("info", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._on_message("warning", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._on_message("error", message, fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._on_message(f"verbose{level}", message, fields)

    def section(self, title: str) -> None:
        self._on_section(title)

    def flush(self) -> None:
        pass

    # Backend hooks --------------------------------------------------------
    def _on_task_start(self, rec: TaskRecord) -> None:
        pass

    def _on_task_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        pass

    def _on_task_end(self, rec: TaskRecord) -> None:
        pass

    def _on_message(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        pass

    def _on_section(self, title: str) -> None:
        pass


_active: Optional[Reporter] = None


def set_reporter(rep: Reporter) -> None:
    global _active
    _active = rep


def get_reporter() -> Reporter:
    """Active reporter; a plain stderr reporter until the CLI picks one."""
    global _active
    if _active is None:
        from .plain import PlainReporter

        _active = PlainReporter(stream=sys.stderr)
    return _active


@contextmanager
def section(title: str) -> Iterator[None]:
    get_reporter().section(title)
    yield


@contextmanager
def task(
    task_id: str, name: str, total: int | None = None, **meta: Any
) -> Iterator[Reporter]:
    """Run a reported task; the task ends FAILED if the body raises."""
    rep = get_reporter()
    rep.start_task(task_id, name, total, **meta)
    status = TaskStatus.FAILED
    try:
        yield rep
        status = TaskStatus.SUCCESS
    finally:
        rep.end_task(task_id, status)
