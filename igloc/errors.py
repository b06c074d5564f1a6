"""Exception hierarchy shared by the scan, export and import pipelines."""

from __future__ import annotations

from typing import Sequence


class IglocError(RuntimeError):
    """Base class for errors surfaced to the command line."""


class PathResolutionError(IglocError):
    """Raised when a scan or walk root cannot be resolved to a directory."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot resolve path {path}: {reason}")
        self.path = path


class NotARepositoryError(IglocError):
    """Raised when a directory is not inside a git work tree."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path} is not a Git repository")
        self.path = path


class ToolInvocationError(IglocError):
    """Raised when the git executable is missing or exits with an error."""

    def __init__(self, args: Sequence[str], message: str) -> None:
        command = " ".join(args)
        super().__init__(f"`{command}` failed: {message}")
        self.command = list(args)


class ConfigError(IglocError):
    """Raised when the pattern configuration file cannot be parsed."""


class ArchiveCreationError(IglocError):
    """Raised when an export archive cannot be created or written."""


class ArchiveOpenError(IglocError):
    """Raised when an archive cannot be opened for reading."""


class ManifestError(IglocError):
    """Raised when an archive manifest is malformed or has an unsupported version."""


class ManifestMissingError(ManifestError):
    """Raised when an archive does not contain manifest.yaml."""


class SyncError(IglocError):
    """Raised when patterns for a single language cannot be fetched."""


__all__ = [
    "ArchiveCreationError",
    "ArchiveOpenError",
    "ConfigError",
    "IglocError",
    "ManifestError",
    "ManifestMissingError",
    "NotARepositoryError",
    "PathResolutionError",
    "SyncError",
    "ToolInvocationError",
]
