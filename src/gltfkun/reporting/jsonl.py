from __future__ import annotations

import json
import logging
import sys
from typing import Any, TextIO

from .base import Reporter, TaskRecord


class JsonLinesReporter(Reporter):
    """One JSON object per event, for pipelines driving the CLI.

    Events are ``task_start``, ``task_progress``, ``task_end`` (carrying
    the task's stats as top-level keys), ``log`` and ``section``.
    """

    def __init__(self, stream: TextIO | None = None):
        super().__init__()
        self.stream = stream or sys.stdout

    def _emit(self, event: str, **fields: Any) -> None:
        line = json.dumps({"event": event, **fields}, sort_keys=True, default=str)
        self.stream.write(line + "\n")

    def on_start(self, rec: TaskRecord) -> None:
        self._emit("task_start", id=rec.task_id, name=rec.label, total=rec.total)

    def on_advance(self, rec: TaskRecord) -> None:
        self._emit(
            "task_progress",
            id=rec.task_id,
            completed=rec.completed,
            item=rec.last_item,
        )

    def on_end(self, rec: TaskRecord) -> None:
        self._emit(
            "task_end",
            **rec.stats,
            id=rec.task_id,
            status=rec.status.name.lower(),
            completed=rec.completed,
            total=rec.total,
            duration_seconds=round(rec.elapsed, 6),
        )

    def on_log(self, levelno: int, message: str) -> None:
        level = logging.getLevelName(levelno).lower()
        self._emit("log", level=level, message=message)

    def section(self, title: str) -> None:
        self._emit("section", title=title)
