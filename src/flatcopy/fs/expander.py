"""Concurrent recursive expansion of a directory tree into copy tasks."""

from __future__ import annotations

import concurrent.futures
import threading
from pathlib import Path
from typing import Any, Callable, Iterable

from flatcopy.fs.copier import CopyGuard, copy_one
from flatcopy.fs.listing import FileSystemEntry, is_output_path, join_relative, list_entries
from flatcopy.progress import ProgressSink
from flatcopy.reporting import FailureReport
from flatcopy.runtime_logging import RuntimeLogger, get_runtime_logger


class CompletionBarrier:
    """Tracks every task spawned onto an executor, at any depth.

    A task may spawn further tasks; ``wait`` returns only once the pending
    count drops to zero, which cannot happen while a running task still has
    children to submit because the child is counted before the parent exits.
    """

    def __init__(
        self,
        executor: concurrent.futures.Executor,
        logger: RuntimeLogger | None = None,
    ) -> None:
        self._executor = executor
        self._logger = logger if logger is not None else get_runtime_logger()
        self._cond = threading.Condition()
        self._pending = 0
        self._spawned = 0

    def spawn(self, fn: Callable[..., Any], *args: Any) -> None:
        with self._cond:
            self._pending += 1
            self._spawned += 1
        try:
            self._executor.submit(self._run, fn, args)
        except BaseException:
            self._finish()
            raise

    def wait(self, timeout: float | None = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout=timeout)

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending

    @property
    def spawned(self) -> int:
        with self._cond:
            return self._spawned

    def _run(self, fn: Callable[..., Any], args: tuple[Any, ...]) -> None:
        try:
            fn(*args)
        except Exception as exc:
            self._logger.error(
                "task.failed",
                task=getattr(fn, "__name__", repr(fn)),
                args=[str(arg) for arg in args],
                error=str(exc),
            )
        finally:
            self._finish()

    def _finish(self) -> None:
        with self._cond:
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()


class Expander:
    def __init__(
        self,
        root: Path,
        *,
        output_dir: str,
        output_path: Path,
        prefix: str,
        guard: CopyGuard,
        progress: ProgressSink,
        report: FailureReport,
        barrier: CompletionBarrier,
    ) -> None:
        self.root = root
        self.output_dir = output_dir
        self.output_path = output_path
        self.prefix = prefix
        self.guard = guard
        self.progress = progress
        self.report = report
        self.barrier = barrier
        self._lock = threading.Lock()
        self._copies_finished = 0

    @property
    def copies_finished(self) -> int:
        with self._lock:
            return self._copies_finished

    def expand_root(self, entries: Iterable[FileSystemEntry]) -> None:
        """Spawn the top-level tasks for the already-listed traversal root."""
        self._spawn_children("", entries)

    def expand(self, directory_path: str) -> None:
        try:
            entries = list_entries(self.root, directory_path)
        except OSError as exc:
            self.report.record("expand", directory_path, exc)
            return
        self._spawn_children(directory_path, entries)

    def copy(self, parent_path: str, file_name: str) -> bool:
        try:
            return copy_one(
                self.root,
                parent_path,
                file_name,
                output_path=self.output_path,
                prefix=self.prefix,
                guard=self.guard,
                progress=self.progress,
                report=self.report,
            )
        finally:
            with self._lock:
                self._copies_finished += 1

    def _spawn_children(self, directory_path: str, entries: Iterable[FileSystemEntry]) -> None:
        for entry in entries:
            if entry.is_dir:
                entry_path = join_relative(directory_path, entry.name)
                if is_output_path(entry_path, self.output_dir):
                    continue
                self.barrier.spawn(self.expand, entry_path)
            else:
                self.barrier.spawn(self.copy, directory_path, entry.name)
