"""Bounded-concurrency guard and the per-file copy task."""

from __future__ import annotations

import shutil
import threading
from pathlib import Path

from flatcopy.fs.listing import join_relative
from flatcopy.fs.naming import encode_destination_name
from flatcopy.progress import ProgressSink
from flatcopy.reporting import FailureReport

COPY_BUFFER_SIZE = 1024 * 1024


class CopyGuard:
    """Counting semaphore limiting simultaneous copy operations.

    Also tracks how many slots are held and the highest count observed, so
    callers can check the bound after a run.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"copy guard limit must be >= 1, got {limit}")
        self.limit = limit
        self._semaphore = threading.BoundedSemaphore(limit)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak = 0

    def acquire(self) -> None:
        self._semaphore.acquire()
        with self._lock:
            self._in_flight += 1
            self._peak = max(self._peak, self._in_flight)

    def release(self) -> None:
        with self._lock:
            self._in_flight -= 1
        self._semaphore.release()

    def __enter__(self) -> CopyGuard:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak


def copy_one(
    root: Path,
    parent_path: str,
    file_name: str,
    *,
    output_path: Path,
    prefix: str,
    guard: CopyGuard,
    progress: ProgressSink,
    report: FailureReport,
) -> bool:
    """Copy one source file into ``output_path`` under its encoded name.

    Failures are reported, never raised. The progress sink advances whether or
    not the copy succeeded. Returns True on success.
    """
    source_path = join_relative(parent_path, file_name)
    try:
        with guard:
            destination = output_path / encode_destination_name(parent_path, file_name, prefix)
            stage = "create"
            try:
                with destination.open("wb") as dest:
                    stage = "open"
                    with (root / source_path).open("rb") as src:
                        stage = "stream"
                        shutil.copyfileobj(src, dest, COPY_BUFFER_SIZE)
            except OSError as exc:
                report.record("copy", source_path, exc, stage=stage)
                return False
            return True
    finally:
        progress.advance()
