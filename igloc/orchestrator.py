"""Pipeline orchestration for scan, export and import flows."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .archive.builder import ArchiveBuilder, ExportFailure
from .archive.restorer import ArchiveRestorer, PlannedFile, RestoreReport, RestoreSettings
from .config import PatternsConfig
from .errors import IglocError
from .git.ignored import IgnoredPathResolver
from .logging import get_logger
from .models import Manifest, RepoExport, ScanResult
from .scanner import Scanner, ScanSettings
from .walker import walk_repos


@dataclass
class ExportOutcome:
    """Result of an export run."""

    output_path: Path
    repos: List[RepoExport] = field(default_factory=list)
    failures: List[ExportFailure] = field(default_factory=list)
    archive_size: Optional[int] = None

    @property
    def file_count(self) -> int:
        return sum(len(repo.files) for repo in self.repos)

    @property
    def written(self) -> bool:
        return self.archive_size is not None


class Orchestrator:
    """Coordinates the walker, scanner and archive components."""

    def __init__(
        self,
        *,
        resolver: IgnoredPathResolver | None = None,
        builder: ArchiveBuilder | None = None,
        patterns: PatternsConfig | None = None,
    ) -> None:
        self.resolver = resolver or IgnoredPathResolver()
        self.builder = builder or ArchiveBuilder()
        self.patterns = patterns
        self.logger = get_logger("orchestrator")

    def run_scan(
        self,
        path: str | Path,
        *,
        recursive: bool = False,
        show_all: bool = False,
        include_deps: bool = False,
    ) -> List[ScanResult]:
        """Scan one repository, or every repository below ``path`` when recursive.

        Recursive runs drop repositories that produced no files.
        """
        scanner = self._scanner(show_all=show_all, include_deps=include_deps)
        if not recursive:
            return [scanner.scan(path)]
        return [
            result
            for result in self._scan_each(scanner, walk_repos(path))
            if result.ignored_files
        ]

    def collect_exports(
        self,
        path: str | Path,
        *,
        recursive: bool = False,
        include_deps: bool = False,
    ) -> List[RepoExport]:
        """Return the secret files of each repository, ready for the archive.

        Always scans with secrets-only semantics. Repositories sharing a
        basename get a path-derived suffix so their files never merge.
        """
        scanner = self._scanner(show_all=False, include_deps=include_deps)
        if recursive:
            results = self._scan_each(scanner, walk_repos(path))
        else:
            results = [scanner.scan(path)]

        repos: List[RepoExport] = []
        taken: set[str] = set()
        for result in results:
            files = [item.path for item in result.secret_files]
            if not files:
                continue
            name = _unique_name(Path(result.root_path), taken)
            taken.add(name)
            repos.append(RepoExport(name=name, path=result.root_path, files=files))
        return repos

    def run_export(
        self,
        output_path: str | Path,
        path: str | Path,
        *,
        recursive: bool = False,
        include_deps: bool = False,
    ) -> ExportOutcome:
        """Collect secret files and write them to ``output_path``.

        No archive is written when nothing qualifies for export.
        """
        target = Path(output_path).expanduser()
        repos = self.collect_exports(path, recursive=recursive, include_deps=include_deps)
        outcome = ExportOutcome(output_path=target, repos=repos)
        if not repos:
            self.logger.debug("Nothing to export under %s", path)
            return outcome

        self.logger.debug("Exporting %d files from %d repositories", outcome.file_count, len(repos))
        outcome.failures = self.builder.build(target, repos)
        outcome.archive_size = target.stat().st_size
        return outcome

    def run_import(
        self,
        archive_path: str | Path,
        settings: RestoreSettings,
        *,
        confirm: Callable[[str], bool] | None = None,
        on_plan: Callable[[Manifest, List[PlannedFile]], None] | None = None,
    ) -> RestoreReport:
        restorer = ArchiveRestorer(settings, confirm=confirm, on_plan=on_plan)
        return restorer.restore(archive_path)

    # ------------------------------------------------------------------
    # Internals

    def _scanner(self, *, show_all: bool, include_deps: bool) -> Scanner:
        extra = self.patterns.dependency_dirs() if self.patterns is not None else []
        settings = ScanSettings(
            show_all=show_all,
            exclude_deps=not include_deps,
            extra_dep_dirs=tuple(extra),
        )
        return Scanner(settings, resolver=self.resolver)

    def _scan_each(self, scanner: Scanner, roots: Iterable[Path]) -> List[ScanResult]:
        results: List[ScanResult] = []
        for root in roots:
            try:
                results.append(scanner.scan(root))
            except IglocError as exc:
                self.logger.warning("Skipping %s: %s", root, exc)
        return results


def _unique_name(root: Path, taken: set[str]) -> str:
    name = root.name or "repo"
    if name not in taken:
        return name
    digest = hashlib.sha256(str(root).encode("utf-8")).hexdigest()[:8]
    return f"{name}-{digest}"


__all__ = ["ExportOutcome", "Orchestrator"]
