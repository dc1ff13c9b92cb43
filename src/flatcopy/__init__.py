"""Flatten a directory tree into a single directory of path-encoded files."""

from flatcopy.version import __version__

__all__ = ["__version__"]
