"""Two-phase flatten run: synchronous scan, then concurrent expand-and-copy."""

from __future__ import annotations

import concurrent.futures
import os
import stat
import time
from dataclasses import dataclass, field
from pathlib import Path

from flatcopy.config.models import FlattenSettings, available_cpus
from flatcopy.fs.copier import CopyGuard
from flatcopy.fs.expander import CompletionBarrier, Expander
from flatcopy.fs.listing import list_entries
from flatcopy.fs.scanner import count_tree
from flatcopy.progress import NullProgressSink, ProgressSink
from flatcopy.reporting import Failure, FailureReport
from flatcopy.runtime_logging import RuntimeLogger, get_runtime_logger


class SetupError(RuntimeError):
    """The run cannot start: root unreadable or output directory unusable."""


@dataclass(slots=True)
class RunSummary:
    total_items: int
    completed: int
    peak_concurrency: int
    elapsed_s: float
    failures: list[Failure] = field(default_factory=list)

    @property
    def copied(self) -> int:
        return self.completed - sum(1 for failure in self.failures if failure.kind == "copy")


def relative_output_dir(root: Path, output_dir: str) -> str:
    """Express ``output_dir`` relative to ``root``, however it was spelled."""
    target = os.path.abspath(os.path.join(root, output_dir))
    try:
        return os.path.normpath(os.path.relpath(target, root))
    except ValueError:
        return output_dir


def prepare_output_dir(output_path: Path, logger: RuntimeLogger | None = None) -> bool:
    """Create ``output_path`` if absent. Returns True when it was created."""
    if logger is None:
        logger = get_runtime_logger()
    try:
        existing = output_path.stat()
    except FileNotFoundError:
        existing = None
    except OSError as exc:
        raise SetupError(f"cannot stat output directory {output_path}: {exc}") from exc

    if existing is not None:
        if not stat.S_ISDIR(existing.st_mode):
            raise SetupError(f"output path exists and is not a directory: {output_path}")
        return False

    try:
        output_path.mkdir(mode=0o777)
    except FileExistsError:
        if not output_path.is_dir():
            raise SetupError(f"output path exists and is not a directory: {output_path}") from None
        return False
    except OSError as exc:
        raise SetupError(f"cannot create output directory {output_path}: {exc}") from exc
    logger.info("run.output_dir.created", path=str(output_path))
    return True


def flatten_tree(
    root: Path,
    settings: FlattenSettings,
    *,
    progress: ProgressSink | None = None,
    logger: RuntimeLogger | None = None,
    report: FailureReport | None = None,
    max_workers: int | None = None,
) -> RunSummary:
    """Copy every leaf file beneath ``root`` into the flat output directory.

    Raises ``SetupError`` for fatal setup problems. Listing and copy failures
    are recorded on ``report`` and the run carries on with independent work.
    """
    started = time.perf_counter()
    root = root.resolve()
    if logger is None:
        logger = get_runtime_logger()
    if report is None:
        report = FailureReport(logger)
    if progress is None:
        progress = NullProgressSink()
    output_dir = relative_output_dir(root, settings.output_dir)
    output_path = root / output_dir

    guard = CopyGuard(settings.max_concurrency)
    logger.info(
        "run.concurrency",
        max_concurrency=guard.limit,
        available=available_cpus(),
    )

    try:
        root_entries = list_entries(root, "")
    except OSError as exc:
        raise SetupError(f"cannot read working directory {root}: {exc}") from exc

    total_items = count_tree(root, root_entries, output_dir=output_dir, report=report)
    logger.info("run.scanned", total_items=total_items)

    prepare_output_dir(output_path, logger)
    progress.set_total(total_items)

    workers = max_workers or max(2, settings.max_concurrency * 2)
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers,
        thread_name_prefix="flatcopy",
    ) as pool:
        barrier = CompletionBarrier(pool, logger)
        expander = Expander(
            root,
            output_dir=output_dir,
            output_path=output_path,
            prefix=settings.prefix,
            guard=guard,
            progress=progress,
            report=report,
            barrier=barrier,
        )
        expander.expand_root(root_entries)
        barrier.wait()

    summary = RunSummary(
        total_items=total_items,
        completed=expander.copies_finished,
        peak_concurrency=guard.peak,
        elapsed_s=time.perf_counter() - started,
        failures=report.failures(),
    )
    logger.info(
        "run.finished",
        total_items=summary.total_items,
        completed=summary.completed,
        failures=len(summary.failures),
    )
    return summary
