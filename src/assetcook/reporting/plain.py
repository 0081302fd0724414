from __future__ import annotations

import sys
from typing import Any, Dict, TextIO

from .base import Reporter, TaskRecord, format_task_line

# label and ANSI colour per message level
_LEVEL_STYLE = {
    "info": ("INFO", "32"),
    "warning": ("WARN", "33"),
    "error": ("ERROR", "31"),
}


class PlainReporter(Reporter):
    """One line per event on stderr; colour only when the stream is a TTY."""

    def __init__(self, stream: TextIO | None = None, use_color: bool | None = None):
        super().__init__()
        self.stream = stream or sys.stderr
        if use_color is None:
            isatty = getattr(self.stream, "isatty", None)
            use_color = bool(isatty and isatty())
        self.use_color = use_color

    def _line(self, text: str) -> None:
        print(text, file=self.stream)

    def _label(self, level: str) -> str:
        label, colour = _LEVEL_STYLE.get(level, (level.upper().replace("VERBOSE", "VERB"), "36"))
        return f"\x1b[{colour}m{label}\x1b[0m" if self.use_color else label

    def _on_task_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        item = meta.get("current_item") or f"item#{rec.completed}"
        self._line(f"   · {rec.name}: {item} ({rec.progress_text()})")

    def _on_task_end(self, rec: TaskRecord) -> None:
        self._line(" " + format_task_line(rec))

    def _on_message(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        self._line(f"{self._label(level)}: {message}")

    def _on_section(self, title: str) -> None:
        self._line(f"\n[{title}]")
