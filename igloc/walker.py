"""Discover git repositories beneath a directory tree."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from .errors import PathResolutionError
from .logging import get_logger

_MARKER = ".git"

# Pruned without visiting; a repository nested inside one of these is never found.
_PRUNED_DIRS = {
    "node_modules",
    "vendor",
    ".cache",
    "__pycache__",
}

logger = get_logger("walker")


def walk_repos(root: str | Path) -> Iterator[Path]:
    """Yield repository roots under ``root`` in depth-first order.

    A directory counts as a repository root when it has a ``.git`` child. The
    walk skips the marker itself but keeps descending into the repository's
    other subdirectories, so nested repositories are reported too.
    """
    root_path = Path(root).expanduser()
    try:
        root_path = root_path.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise PathResolutionError(str(root), str(exc)) from exc
    if not root_path.is_dir():
        raise PathResolutionError(str(root), "not a directory")

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_log_walk_error):
        if _MARKER in dirnames or _MARKER in filenames:
            yield Path(dirpath)

        dirnames[:] = sorted(
            name for name in dirnames if name != _MARKER and name not in _PRUNED_DIRS
        )


def _log_walk_error(error: OSError) -> None:
    logger.debug("Skipping unreadable entry %s: %s", error.filename, error.strerror)


__all__ = ["walk_repos"]
