"""Destination filename encoding for flattened copies."""

from __future__ import annotations

import re

_SEPARATORS = re.compile(r"[\\/]")


def sanitize_path(parent_path: str) -> str:
    return _SEPARATORS.sub("_", parent_path)


def encode_destination_name(parent_path: str, file_name: str, prefix: str = "") -> str:
    """Return the flat name for ``file_name`` found under ``parent_path``.

    The result is ``prefix + sanitize(parent_path) + "_" + file_name``. An empty
    parent (a root-level file) still contributes the joining underscore, so
    ``z.txt`` with prefix ``run_`` becomes ``run__z.txt``.
    """
    return f"{prefix}{sanitize_path(parent_path)}_{file_name}"
