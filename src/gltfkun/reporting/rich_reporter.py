from __future__ import annotations

import os
from typing import Any, Dict, List

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, TaskStatus, level_tag

_ICONS = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
}
_STYLES = {
    "ERROR": "bold red",
    "WARN": "yellow",
    "INFO": "green",
    "DEBUG": "cyan",
}


class RichReporter(Reporter):
    """Interactive reporter drawing live bars for counted tasks.

    Only resource resolution is started with a total; the other stages
    print just their completion line. Set ``GLTFKUN_PROGRESS_TRANSIENT=1``
    to clear the bars and print the completion lines once all counted
    tasks are done.
    """

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(stderr=True, highlight=False)
        self._transient = os.getenv("GLTFKUN_PROGRESS_TRANSIENT", "0").lower() in (
            "1",
            "true",
            "yes",
        )
        self._progress: Progress | None = None
        self._bars: Dict[str, Any] = {}
        self._pending: List[str] = []

    def _bar_for(self, rec: TaskRecord) -> Any:
        if self._progress is None:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                BarColumn(bar_width=None),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self.console,
                transient=self._transient,
                expand=True,
            )
            self._progress.start()
        return self._progress.add_task(rec.label, total=rec.total)

    def on_start(self, rec: TaskRecord) -> None:
        if rec.total is not None:
            self._bars[rec.task_id] = self._bar_for(rec)

    def on_advance(self, rec: TaskRecord) -> None:
        bar = self._bars.get(rec.task_id)
        if bar is not None and self._progress is not None:
            self._progress.update(bar, completed=rec.completed)

    def on_end(self, rec: TaskRecord) -> None:
        bar = self._bars.pop(rec.task_id, None)
        if bar is not None and self._progress is not None:
            self._progress.remove_task(bar)
        line = f"{_ICONS.get(rec.status, '?')} {rec.summary()}"
        if self._transient and self._progress is not None:
            self._pending.append(line)
        else:
            self.console.print(line, markup=True)
        if not self._bars:
            self.flush()

    def on_log(self, levelno: int, message: str) -> None:
        tag = level_tag(levelno)
        self.console.print(f"[{_STYLES[tag]}]{tag}[/]: ", end="")
        self.console.print(message, markup=False)

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        if self._progress is None:
            return
        try:
            self._progress.stop()
        finally:
            self._progress = None
            for line in self._pending:
                self.console.print(line)
            self._pending.clear()
