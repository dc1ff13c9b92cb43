"""Synchronous pre-scan that counts the leaf files a run will copy."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from flatcopy.fs.listing import FileSystemEntry, is_output_path, join_relative, list_entries
from flatcopy.reporting import FailureReport


def scan_entries(
    root: Path,
    entries: Iterable[FileSystemEntry],
    parent_path: str,
    *,
    output_dir: str,
    report: FailureReport,
) -> int:
    """Count leaf files beneath each of ``entries``.

    Every entry is listed as a directory; entries that cannot be listed are
    reported and skipped, so the total under-counts rather than failing.
    """
    total = 0
    for entry in entries:
        entry_path = join_relative(parent_path, entry.name)
        if is_output_path(entry_path, output_dir):
            continue
        try:
            children = list_entries(root, entry_path)
        except OSError as exc:
            report.record("scan", entry_path, exc)
            continue

        directories = [child for child in children if child.is_dir]
        total += len(children) - len(directories)
        total += scan_entries(
            root,
            directories,
            entry_path,
            output_dir=output_dir,
            report=report,
        )
    return total


def count_tree(
    root: Path,
    root_entries: Iterable[FileSystemEntry],
    *,
    output_dir: str,
    report: FailureReport,
) -> int:
    directories: list[FileSystemEntry] = []
    files = 0
    for entry in root_entries:
        if entry.is_dir:
            directories.append(entry)
        elif not is_output_path(entry.name, output_dir):
            files += 1
    return files + scan_entries(root, directories, "", output_dir=output_dir, report=report)
