from __future__ import annotations

import os
from typing import Any, Dict

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, format_task_line

_LEVEL_MARKUP = {
    "info": "[green]INFO[/]",
    "warning": "[yellow]WARN[/]",
    "error": "[bold red]ERROR[/]",
}


def _transient_from_env() -> bool:
    value = os.environ.get("ASSETCOOK_PROGRESS_TRANSIENT", "")
    return value.strip().lower() in {"1", "true", "yes", "on"}


class RichReporter(Reporter):
    """Live progress bars for counted tasks, rules for sections.

    Bars disappear on completion when ``ASSETCOOK_PROGRESS_TRANSIENT`` is set;
    the completion line with the cook counters is printed either way.
    """

    supports_progress = True

    def __init__(self, console: Console | None = None, transient: bool | None = None):
        super().__init__()
        self.console = console or Console(stderr=True, highlight=False)
        self.transient = _transient_from_env() if transient is None else transient
        self._progress: Progress | None = None
        self._bars: Dict[str, TaskID] = {}

    def _bar_host(self) -> Progress:
        if self._progress is None:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold]{task.description}"),
                BarColumn(bar_width=None),
                MofNCompleteColumn(),
                TextColumn("{task.fields[item]}", style="dim"),
                TimeElapsedColumn(),
                console=self.console,
                transient=self.transient,
                expand=True,
            )
            self._progress.start()
        return self._progress

    def _on_task_start(self, rec: TaskRecord) -> None:
        if rec.total is None:
            self.console.rule(rec.name)
            return
        self._bars[rec.task_id] = self._bar_host().add_task(
            rec.name, total=rec.total, item=""
        )

    def _on_task_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        bar = self._bars.get(rec.task_id)
        if bar is not None and self._progress is not None:
            self._progress.update(
                bar, completed=rec.completed, item=meta.get("current_item", "")
            )

    def _on_task_end(self, rec: TaskRecord) -> None:
        bar = self._bars.pop(rec.task_id, None)
        if bar is not None and self._progress is not None:
            self._progress.update(bar, completed=rec.total, item="")
        self.console.print(format_task_line(rec), markup=False)
        if not self._bars:
            self.flush()

    def _on_message(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        label = _LEVEL_MARKUP.get(level, f"[cyan]{level.upper()}[/]")
        self.console.print(f"{label}: ", end="")
        self.console.print(message, markup=False)

    def _on_section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        progress, self._progress = self._progress, None
        if progress is not None:
            progress.stop()
