"""Directory listing primitives shared by the scanner and the expander."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class FileSystemEntry:
    name: str
    is_dir: bool


def join_relative(parent_path: str, name: str) -> str:
    if not parent_path:
        return name
    return os.path.join(parent_path, name)


def list_entries(root: Path, relative_path: str) -> list[FileSystemEntry]:
    """List ``root / relative_path`` without following symlinks.

    Raises ``OSError`` when the path cannot be read as a directory.
    """
    target = root / relative_path if relative_path else root
    with os.scandir(target) as it:
        entries = [
            FileSystemEntry(name=item.name, is_dir=item.is_dir(follow_symlinks=False))
            for item in it
        ]
    entries.sort(key=lambda entry: entry.name)
    return entries


def is_output_path(relative_path: str, output_dir: str) -> bool:
    return os.path.normpath(relative_path) == output_dir
