"""Collected, logged failures for the log-and-continue error policy."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Literal

from flatcopy.runtime_logging import RuntimeLogger, get_runtime_logger

FailureKind = Literal["scan", "expand", "copy"]

_EVENTS: dict[str, str] = {
    "scan": "scan.list_failed",
    "expand": "expand.list_failed",
    "copy": "copy.failed",
}


@dataclass(slots=True, frozen=True)
class Failure:
    kind: FailureKind
    path: str
    error: str
    stage: str | None = None


class FailureReport:
    """Thread-safe failure collector; every recorded failure is also logged."""

    def __init__(self, logger: RuntimeLogger | None = None) -> None:
        self._logger = logger if logger is not None else get_runtime_logger()
        self._lock = threading.Lock()
        self._failures: list[Failure] = []

    def record(
        self,
        kind: FailureKind,
        path: str,
        exc: BaseException,
        *,
        stage: str | None = None,
    ) -> Failure:
        failure = Failure(kind=kind, path=path, error=str(exc), stage=stage)
        with self._lock:
            self._failures.append(failure)
        fields = {"path": path, "error": failure.error}
        if stage is not None:
            fields["stage"] = stage
        self._logger.error(_EVENTS[kind], **fields)
        return failure

    def failures(self) -> list[Failure]:
        with self._lock:
            return list(self._failures)

    def __len__(self) -> int:
        with self._lock:
            return len(self._failures)
