"""JSON lines reporter for build systems and CI logs.

Every event is one JSON object on its own line with an ``event`` key. Status
lines shaped like ``"Cook summary: assets=3 cooked=3 ..."`` additionally
produce a ``summary`` event whose counters are parsed out of the message.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional, TextIO

from .base import Reporter, TaskRecord

_SUMMARY_KINDS = ("cook", "import", "registry", "validate", "blob")


def parse_summary(message: str) -> Optional[Dict[str, str]]:
    """Split ``"<Kind> summary: k=v ..."`` into fields, or None."""
    head, sep, tail = message.partition(":")
    words = head.lower().split()
    if not sep or len(words) != 2 or words[1] != "summary" or words[0] not in _SUMMARY_KINDS:
        return None
    parsed = {"summary_type": words[0]}
    for token in tail.split():
        key, eq, value = token.partition("=")
        if eq:
            parsed[key] = value
    return parsed


class JsonLinesReporter(Reporter):
    def __init__(self, stream: TextIO | None = None):
        super().__init__()
        self.stream = stream or sys.stdout

    def _event(self, kind: str, **payload: Any) -> None:
        payload["event"] = kind
        self.stream.write(json.dumps(payload, sort_keys=True, default=str) + "\n")

    def _on_task_start(self, rec: TaskRecord) -> None:
        self._event("task_start", id=rec.task_id, name=rec.name, total=rec.total, **rec.meta)

    def _on_task_advance(self, rec: TaskRecord, meta: Dict[str, Any]) -> None:
        self._event("task_progress", id=rec.task_id, completed=rec.completed, **meta)

    def _on_task_end(self, rec: TaskRecord) -> None:
        self._event(
            "task_end",
            id=rec.task_id,
            status=rec.status.value,
            completed=rec.completed,
            total=rec.total,
            duration_seconds=rec.duration,
            **rec.meta,
        )

    def _on_message(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        if level == "info":
            summary = parse_summary(message)
            if summary is not None:
                self._event("summary", level=level, raw=message, **{**summary, **fields})
        if level.startswith("verbose"):
            fields = {"vlevel": int(level[len("verbose"):]), **fields}
        self._event("status", message=message, level=level, **fields)

    def _on_section(self, title: str) -> None:
        self._event("section", title=title)
