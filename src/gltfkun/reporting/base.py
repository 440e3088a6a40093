"""Progress reporting for codec stages.

Import and export run their stages (resource resolution, graph
construction, JSON emission, GLB packing) inside :func:`task`. The base
:class:`Reporter` owns the bookkeeping of running tasks; a backend only
overrides the ``on_*`` hooks to render a task event or a log line.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "STAT_KEYS",
    "level_tag",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "task",
]

# Stats surfaced in task summaries, in display order.
STAT_KEYS = ("uris", "buffers", "accessors", "nodes", "extensions", "bytes")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    label: str
    total: Optional[int] = None
    completed: int = 0
    last_item: Optional[str] = None
    status: TaskStatus = TaskStatus.RUNNING
    started: float = field(default_factory=time.perf_counter)
    finished: Optional[float] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed(self) -> float:
        end = self.finished if self.finished is not None else self.started
        return end - self.started

    def summary(self) -> str:
        """``label [n/total] (secs) [key=value ...]`` for end-of-task lines."""
        counted = (
            f" {self.completed}/{self.total}" if self.total is not None else ""
        )
        shown = [f"{k}={self.stats[k]}" for k in STAT_KEYS if k in self.stats]
        extra = f" [{' '.join(shown)}]" if shown else ""
        return f"{self.label}{counted} ({self.elapsed:.2f}s){extra}"


def level_tag(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    if levelno >= logging.INFO:
        return "INFO"
    return "DEBUG"


_VERBOSITY = 0


def set_verbosity(level: int) -> None:
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


class Reporter:
    """Task tracker with rendering hooks; renders nothing by itself."""

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskRecord] = {}

    def start_task(
        self, task_id: str, label: str, total: Optional[int] = None
    ) -> None:
        rec = TaskRecord(task_id, label, total)
        self._tasks[task_id] = rec
        self.on_start(rec)

    def advance(self, task_id: str, item: Optional[str] = None) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += 1
        rec.last_item = item
        self.on_advance(rec)

    def end_task(
        self, task_id: str, status: TaskStatus, **stats: Any
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.status = status
        rec.finished = time.perf_counter()
        rec.stats.update(stats)
        self.on_end(rec)

    def log(self, levelno: int, message: str) -> None:
        self.on_log(levelno, message)

    def status(self, message: str) -> None:
        self.log(logging.INFO, message)

    def verbose(self, message: str, *, level: int = 1) -> None:
        if get_verbosity() >= level:
            self.log(logging.DEBUG, message)

    def warning(self, message: str) -> None:
        self.log(logging.WARNING, message)

    def error(self, message: str) -> None:
        self.log(logging.ERROR, message)

    def section(self, title: str) -> None:
        pass

    def flush(self) -> None:
        pass

    def on_start(self, rec: TaskRecord) -> None:
        pass

    def on_advance(self, rec: TaskRecord) -> None:
        pass

    def on_end(self, rec: TaskRecord) -> None:
        pass

    def on_log(self, levelno: int, message: str) -> None:
        pass


_ACTIVE: Optional[Reporter] = None


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE
    _ACTIVE = rep


def get_reporter() -> Reporter:
    """Return the installed reporter, or a silent one for library callers."""
    global _ACTIVE
    if _ACTIVE is None:
        _ACTIVE = Reporter()
    return _ACTIVE


@contextmanager
def task(
    task_id: str, label: str, total: Optional[int] = None
) -> Iterator[Dict[str, Any]]:
    """Run a block as a reported codec stage.

    The yielded dict collects stats; they are attached to the task's end
    event whether the block succeeds or raises.
    """
    rep = get_reporter()
    rep.start_task(task_id, label, total)
    stats: Dict[str, Any] = {}
    try:
        yield stats
    except Exception:
        rep.end_task(task_id, TaskStatus.FAILED, **stats)
        raise
    rep.end_task(task_id, TaskStatus.SUCCESS, **stats)
