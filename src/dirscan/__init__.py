"""Directory scanning with gitignore-compatible exclusion rules.

This package walks a directory tree and annotates every file and directory with
an exclusion verdict derived from gitignore-style patterns, size limits and
binary-content heuristics.
"""

from importlib.metadata import PackageNotFoundError, version

# Expose the version for both programmatic use and CLI
try:
    __version__ = version("dirscan")
except PackageNotFoundError:
    __version__ = "unknown"
