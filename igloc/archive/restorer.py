"""Restore exported files from an archive onto this machine."""

from __future__ import annotations

import os
import shutil
import stat
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional

from ..config import patterns_file_path
from ..errors import ArchiveOpenError, ManifestError, ManifestMissingError
from ..logging import get_logger
from ..models import Manifest, RepoExport
from .manifest import MANIFEST_NAME, PATTERNS_NAME, archive_member, load_manifest

_CHUNK_SIZE = 1024 * 1024

CONFIRM_PROMPT = "Proceed with import? [y/N] "


@dataclass(frozen=True)
class RestoreSettings:
    """Effective options for an import run."""

    base_dir: Optional[Path] = None
    dry_run: bool = False
    assume_yes: bool = False


@dataclass(frozen=True)
class PlannedFile:
    """A manifest entry paired with where it will be written."""

    repo: str
    file: str
    destination: Path
    exists: bool


@dataclass(frozen=True)
class FileOutcome:
    """Result of extracting a single file."""

    repo: str
    file: str
    destination: Path
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RestoreReport:
    """Consolidated outcome of an import run."""

    archive_path: Path
    manifest: Manifest
    planned: List[PlannedFile] = field(default_factory=list)
    outcomes: List[FileOutcome] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False
    patterns_restored: bool = False

    @property
    def written(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    @property
    def conflicts(self) -> int:
        return sum(1 for item in self.planned if item.exists)


def prompt_confirmation(message: str) -> bool:
    """Ask on stdin; only ``y`` or ``yes`` counts as consent."""
    try:
        response = input(message)
    except EOFError:
        return False
    return response.strip().lower() in {"y", "yes"}


class ArchiveRestorer:
    """Reads an export archive and writes its files to resolved destinations."""

    def __init__(
        self,
        settings: RestoreSettings | None = None,
        *,
        confirm: Callable[[str], bool] | None = None,
        on_plan: Callable[[Manifest, List[PlannedFile]], None] | None = None,
        patterns_path: Path | None = None,
    ) -> None:
        self.settings = settings or RestoreSettings()
        self._confirm = confirm or prompt_confirmation
        self._on_plan = on_plan
        self.patterns_path = patterns_path
        self.logger = get_logger("archive.restorer")

    def restore(self, archive_path: str | Path) -> RestoreReport:
        """Run the import; per-file failures are recorded in the report, not raised."""
        path = Path(archive_path).expanduser()
        archive = _open_archive(path)
        with archive:
            manifest = read_manifest(archive)
            planned = self.plan(manifest)
            report = RestoreReport(
                archive_path=path,
                manifest=manifest,
                planned=planned,
                dry_run=self.settings.dry_run,
            )
            if self._on_plan is not None:
                self._on_plan(manifest, planned)

            if self.settings.dry_run:
                return report

            if not self.settings.assume_yes and not self._confirm(CONFIRM_PROMPT):
                self.logger.debug("Import cancelled by user")
                report.cancelled = True
                return report

            for item in planned:
                report.outcomes.append(self._extract(archive, item))
            report.patterns_restored = self._restore_patterns(archive)
        return report

    def plan(self, manifest: Manifest) -> List[PlannedFile]:
        planned: List[PlannedFile] = []
        for repo in manifest.repos:
            for file_path in repo.files:
                destination = self.resolve_destination(repo, file_path)
                planned.append(
                    PlannedFile(
                        repo=repo.name,
                        file=file_path,
                        destination=destination,
                        exists=destination.exists(),
                    )
                )
        return planned

    def resolve_destination(self, repo: RepoExport, file_path: str) -> Path:
        """Pick the base override, then the original path if present, then the cwd."""
        if self.settings.base_dir is not None:
            return Path(self.settings.base_dir).expanduser() / repo.name / file_path
        if repo.path and Path(repo.path).is_dir():
            return Path(repo.path) / file_path
        return Path(".") / repo.name / file_path

    # ------------------------------------------------------------------
    # Internals

    def _extract(self, archive: zipfile.ZipFile, item: PlannedFile) -> FileOutcome:
        problem = _unsafe_reason(item.repo, item.file)
        if problem is not None:
            return self._failure(item, problem)

        try:
            info = archive.getinfo(archive_member(item.repo, item.file))
        except KeyError:
            return self._failure(item, "missing from archive")

        try:
            item.destination.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(info) as src, item.destination.open("wb") as dst:
                shutil.copyfileobj(src, dst, _CHUNK_SIZE)
        except (OSError, zipfile.BadZipFile) as exc:
            return self._failure(item, str(exc))

        mode = stat.S_IMODE(info.external_attr >> 16)
        if mode:
            try:
                os.chmod(item.destination, mode)
            except OSError as exc:
                self.logger.debug("Could not restore mode of %s: %s", item.destination, exc)

        self.logger.debug("Restored %s", item.destination)
        return FileOutcome(repo=item.repo, file=item.file, destination=item.destination)

    def _failure(self, item: PlannedFile, reason: str) -> FileOutcome:
        self.logger.warning("Could not restore %s/%s: %s", item.repo, item.file, reason)
        return FileOutcome(
            repo=item.repo, file=item.file, destination=item.destination, error=reason
        )

    def _restore_patterns(self, archive: zipfile.ZipFile) -> bool:
        if PATTERNS_NAME not in archive.namelist():
            return False
        target = self.patterns_path or patterns_file_path()
        try:
            data = archive.read(PATTERNS_NAME)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except (OSError, zipfile.BadZipFile) as exc:
            self.logger.warning("Could not import patterns: %s", exc)
            return False
        return True


def read_manifest(archive: zipfile.ZipFile) -> Manifest:
    try:
        raw = archive.read(MANIFEST_NAME)
    except KeyError as exc:
        raise ManifestMissingError(f"{MANIFEST_NAME} not found in archive") from exc
    except (OSError, zipfile.BadZipFile) as exc:
        raise ManifestError(f"Failed to read {MANIFEST_NAME}: {exc}") from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestError(f"{MANIFEST_NAME} is not valid UTF-8") from exc
    return load_manifest(text)


def _open_archive(path: Path) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(path)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveOpenError(f"Failed to open archive {path}: {exc}") from exc


def _unsafe_reason(repo_name: str, file_path: str) -> Optional[str]:
    name = PurePosixPath(repo_name)
    if len(name.parts) != 1 or repo_name in {".", ".."} or "\\" in repo_name:
        return f"unsafe repository name {repo_name!r}"
    rel = PurePosixPath(file_path.replace("\\", "/"))
    if rel.is_absolute() or not rel.parts or ".." in rel.parts:
        return "path escapes the destination directory"
    return None


__all__ = [
    "ArchiveRestorer",
    "FileOutcome",
    "PlannedFile",
    "RestoreReport",
    "RestoreSettings",
    "prompt_confirmation",
    "read_manifest",
]
