"""Progress sinks fed by the scan total and one advance per finished copy."""

from __future__ import annotations

import threading
from typing import Protocol

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


class ProgressSink(Protocol):
    def set_total(self, total: int) -> None: ...

    def advance(self) -> None: ...


class NullProgressSink:
    def set_total(self, total: int) -> None:  # noqa: ARG002
        return

    def advance(self) -> None:
        return


class CountingProgressSink:
    """Lock-protected counter, useful for library callers and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.total: int | None = None
        self._count = 0

    def set_total(self, total: int) -> None:
        with self._lock:
            self.total = total

    def advance(self) -> None:
        with self._lock:
            self._count += 1

    @property
    def count(self) -> int:
        with self._lock:
            return self._count


class RichProgressSink:
    def __init__(self, description: str = "Copying", console: Console | None = None) -> None:
        self._progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=None),
            MofNCompleteColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            console=console or Console(stderr=True),
            transient=False,
        )
        self._task: TaskID = self._progress.add_task(description, total=None)

    def __enter__(self) -> RichProgressSink:
        self._progress.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._progress.stop()

    def set_total(self, total: int) -> None:
        self._progress.update(self._task, total=total)

    def advance(self) -> None:
        self._progress.advance(self._task, 1)
