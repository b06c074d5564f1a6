"""Build a categorized inventory of the ignored files in one repository."""

from __future__ import annotations

import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .classifier import classify
from .config import normalize_dep_pattern
from .errors import NotARepositoryError, PathResolutionError
from .git.ignored import IgnoredPathResolver
from .logging import get_logger
from .models import IgnoredFile, ScanResult

_DEPENDENCY_DIRS: tuple[str, ...] = (
    "node_modules",
    "vendor",
    ".venv",
    "venv",
    "__pycache__",
    ".gradle",
    "target",
    "Pods",
)


@dataclass(frozen=True)
class ScanSettings:
    """Effective filter options for a scan run."""

    show_all: bool = False
    exclude_deps: bool = True
    extra_dep_dirs: Sequence[str] = ()


class Scanner:
    """Classifies the git-ignored files of a repository root."""

    def __init__(
        self,
        settings: ScanSettings | None = None,
        resolver: IgnoredPathResolver | None = None,
    ) -> None:
        self.settings = settings or ScanSettings()
        self.resolver = resolver or IgnoredPathResolver()
        self.logger = get_logger("scanner")
        extra = (normalize_dep_pattern(item) for item in self.settings.extra_dep_dirs)
        self._dep_dirs = tuple(dict.fromkeys([*_DEPENDENCY_DIRS, *(item for item in extra if item)]))

    def scan(self, root: str | Path) -> ScanResult:
        """Return the ignored files under ``root`` that pass the configured filters."""
        root_path = _resolve_root(root)

        try:
            ignored_paths = self.resolver.resolve(root_path)
        except NotARepositoryError:
            self.logger.debug("Skipping %s: not a git repository", root_path)
            return ScanResult(root_path=str(root_path))

        files: List[IgnoredFile] = []
        for rel_path in ignored_paths:
            if self.settings.exclude_deps and self.is_dependency_path(rel_path):
                continue

            try:
                stat_result = (root_path / rel_path).stat()
            except OSError:
                self.logger.debug("Ignored path vanished: %s", rel_path)
                continue
            if stat.S_ISDIR(stat_result.st_mode):
                continue

            classification = classify(rel_path)
            if not (self.settings.show_all or classification.is_secret):
                continue
            files.append(
                IgnoredFile(
                    path=rel_path,
                    size=stat_result.st_size,
                    category=classification.category,
                    is_secret=classification.is_secret,
                )
            )

        self.logger.debug(
            "Scanned %s: %d of %d ignored paths kept",
            root_path,
            len(files),
            len(ignored_paths),
        )
        return ScanResult(root_path=str(root_path), ignored_files=tuple(files))

    def is_dependency_path(self, rel_path: str) -> bool:
        normalized = rel_path.replace("\\", "/")
        for directory in self._dep_dirs:
            prefix = f"{directory}/"
            if normalized.startswith(prefix) or f"/{prefix}" in normalized:
                return True
        return False


def _resolve_root(root: str | Path) -> Path:
    try:
        return Path(root).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise PathResolutionError(str(root), str(exc)) from exc


__all__ = ["ScanSettings", "Scanner"]
