from __future__ import annotations

import logging
import sys
from typing import TextIO

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity, level_tag

_ICONS = {TaskStatus.SUCCESS: "✔", TaskStatus.FAILED: "✖"}
_COLORS = {"ERROR": "31", "WARN": "33", "INFO": "32", "DEBUG": "36"}


class PlainReporter(Reporter):
    """Line-oriented stderr output; ANSI color only when writing to a TTY."""

    def __init__(self, stream: TextIO | None = None, use_color: bool | None = None):
        super().__init__()
        self.stream = stream or sys.stderr
        if use_color is None:
            use_color = getattr(self.stream, "isatty", lambda: False)()
        self.use_color = use_color

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")

    def on_advance(self, rec: TaskRecord) -> None:
        # per-URI lines only at -v
        if get_verbosity() < 1:
            return
        item = rec.last_item or f"#{rec.completed}"
        total = "?" if rec.total is None else rec.total
        self._write(f"   · {rec.label}: {item} ({rec.completed}/{total})")

    def on_end(self, rec: TaskRecord) -> None:
        self._write(f" {_ICONS.get(rec.status, '?')} {rec.summary()}")

    def on_log(self, levelno: int, message: str) -> None:
        tag = level_tag(levelno)
        if self.use_color:
            tag = f"\x1b[{_COLORS[tag]}m{tag}\x1b[0m"
        self._write(f"{tag}: {message}")

    def section(self, title: str) -> None:
        self._write(f"\n[{title}]")
