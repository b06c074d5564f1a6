"""Write secret files and their manifest into a portable zip archive."""

from __future__ import annotations

import os
import shutil
import socket
import zipfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..config import patterns_file_path
from ..errors import ArchiveCreationError
from ..logging import get_logger
from ..models import Manifest, RepoExport
from .manifest import MANIFEST_NAME, PATTERNS_NAME, archive_member, dump_manifest

_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class ExportFailure:
    """A file listed in the manifest that could not be written to the archive."""

    repo: str
    file: str
    reason: str


class ArchiveBuilder:
    """Creates export archives: manifest first, optional patterns, then file contents."""

    def __init__(
        self,
        *,
        patterns_path: Path | None = None,
        compression_level: int = 6,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.patterns_path = patterns_path
        self.compression_level = compression_level
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("archive.builder")

    def build(
        self,
        output_path: str | Path,
        repos: Sequence[RepoExport],
        *,
        machine: Optional[str] = None,
    ) -> List[ExportFailure]:
        """Write the archive and return the files that had to be skipped."""
        target = Path(output_path).expanduser()
        manifest = Manifest(
            created_at=self._clock(),
            machine=machine if machine is not None else _hostname(),
            repos=list(repos),
        )

        temp_path = target.with_name(f"{target.name}.tmp.{os.getpid()}")
        failures: List[ExportFailure] = []
        try:
            with zipfile.ZipFile(
                temp_path,
                "w",
                zipfile.ZIP_DEFLATED,
                compresslevel=self.compression_level,
                allowZip64=True,
            ) as archive:
                archive.writestr(MANIFEST_NAME, dump_manifest(manifest))
                self._write_patterns(archive)
                for repo in manifest.repos:
                    self.logger.info("Exporting %s (%d files)", repo.name, len(repo.files))
                    for file_path in repo.files:
                        failure = self._add_file(archive, repo, file_path)
                        if failure is not None:
                            failures.append(failure)
            os.replace(temp_path, target)
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            _remove_quietly(temp_path)
            raise ArchiveCreationError(f"Failed to write archive {target}: {exc}") from exc
        except BaseException:
            _remove_quietly(temp_path)
            raise

        return failures

    # ------------------------------------------------------------------
    # Internals

    def _write_patterns(self, archive: zipfile.ZipFile) -> None:
        source = self.patterns_path or patterns_file_path()
        try:
            data = source.read_bytes()
        except OSError:
            self.logger.debug("No readable pattern config at %s", source)
            return
        archive.writestr(PATTERNS_NAME, data)

    def _add_file(
        self, archive: zipfile.ZipFile, repo: RepoExport, file_path: str
    ) -> ExportFailure | None:
        source = Path(repo.path) / file_path
        member = archive_member(repo.name, file_path)
        try:
            info = zipfile.ZipInfo.from_file(
                source, arcname=member, strict_timestamps=False
            )
            if info.is_dir():
                raise IsADirectoryError(f"{source} is a directory")
            info.compress_type = zipfile.ZIP_DEFLATED
            with source.open("rb") as src, archive.open(info, "w") as dst:
                shutil.copyfileobj(src, dst, _CHUNK_SIZE)
        except (OSError, ValueError) as exc:
            reason = getattr(exc, "strerror", None) or str(exc)
            self.logger.warning("Could not add %s: %s", file_path, reason)
            return ExportFailure(repo=repo.name, file=file_path, reason=reason)
        return None


def _hostname() -> Optional[str]:
    try:
        return socket.gethostname() or None
    except OSError:
        return None


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        pass


__all__ = ["ArchiveBuilder", "ExportFailure"]
