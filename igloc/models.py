"""Core data models shared across igloc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


class Category(str, Enum):
    """Likely purpose of an ignored file."""

    ENV = "env"
    KEY = "key"
    CONFIG = "config"
    BUILD = "build"
    CACHE = "cache"
    IDE = "ide"
    OTHER = "other"


@dataclass(frozen=True)
class IgnoredFile:
    """A file on disk that git excludes from tracking."""

    path: str
    size: int
    category: Category
    is_secret: bool


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning a single repository root."""

    root_path: str
    ignored_files: Tuple[IgnoredFile, ...] = ()

    @property
    def total_size(self) -> int:
        return sum(item.size for item in self.ignored_files)

    @property
    def secret_count(self) -> int:
        return sum(1 for item in self.ignored_files if item.is_secret)

    @property
    def secret_files(self) -> List[IgnoredFile]:
        return [item for item in self.ignored_files if item.is_secret]

    def filter_category(self, category: Category | str | None) -> List[IgnoredFile]:
        """Return ignored files in ``category``, or all files when it is empty."""
        if not category:
            return list(self.ignored_files)
        wanted = Category(category)
        return [item for item in self.ignored_files if item.category is wanted]


@dataclass
class RepoExport:
    """One repository's contribution to an export archive."""

    name: str
    path: str
    files: List[str] = field(default_factory=list)


@dataclass
class Manifest:
    """Metadata record stored as manifest.yaml inside an archive."""

    created_at: datetime
    repos: List[RepoExport] = field(default_factory=list)
    machine: Optional[str] = None
    version: int = 1

    @property
    def file_count(self) -> int:
        return sum(len(repo.files) for repo in self.repos)
