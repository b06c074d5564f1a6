"""Fetch dependency-directory patterns from the github/gitignore templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .config import COMMON_GROUP, Language, PatternsConfig
from .errors import SyncError
from .logging import get_logger

TEMPLATE_URL = "https://raw.githubusercontent.com/github/gitignore/main/{language}.gitignore"

DEFAULT_LANGUAGES: tuple[str, ...] = (
    "Python",
    "Node",
    "Go",
    "Ruby",
    "Java",
    "Rust",
    "Scala",
    "Haskell",
    "Elixir",
    "Dart",
    "Swift",
    "Objective-C",
    "Kotlin",
    "C++",
    "C",
)

_DEPS_KEYWORDS: tuple[str, ...] = (
    "node_modules",
    "vendor",
    "venv",
    ".venv",
    "env",
    "__pycache__",
    "site-packages",
    "packages",
    ".eggs",
    "eggs",
    "dist",
    "build",
    "target",
    "deps",
    "_build",
    ".gradle",
    ".m2",
    "pods",
    "carthage",
    ".dart_tool",
    ".pub",
    ".stack-work",
    "dist-newstyle",
    ".cabal",
    "elm-stuff",
    "bower_components",
    ".bundle",
    ".cargo",
    "pkg",
    "bin",
    "obj",
    "out",
    "lib",
    "libs",
    ".nuget",
    ".paket",
    "jspm_packages",
    ".pnp",
    ".yarn",
    "__pypackages__",
    ".tox",
    ".nox",
    ".mypy_cache",
    ".pytest_cache",
    ".hypothesis",
    ".ruff_cache",
    ".pixi",
)

COMMON_PATTERNS: tuple[str, ...] = (
    ".cache/",
    ".tmp/",
    "tmp/",
    "temp/",
    ".circleci/",
    ".github/",
    ".gitlab/",
    ".idea/",
    ".vscode/",
    ".vs/",
)

Fetcher = Callable[[str], str]


@dataclass
class SyncReport:
    """Patterns gathered by a sync run plus the languages that failed."""

    config: PatternsConfig
    counts: Dict[str, int] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def pattern_total(self) -> int:
        return len(self.config.all_deps_dirs())


class PatternSyncer:
    """Downloads gitignore templates and keeps their dependency directory lines."""

    def __init__(self, fetch: Fetcher | None = None, *, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self._fetch = fetch or self._http_fetch
        self.logger = get_logger("sync")

    def sync(self, languages: Sequence[str] = DEFAULT_LANGUAGES) -> SyncReport:
        config = PatternsConfig(updated_at=datetime.now(UTC))
        report = SyncReport(config=config)
        for language in languages:
            try:
                text = self._fetch(language)
            except SyncError as exc:
                self.logger.warning("Fetching %s failed: %s", language, exc)
                report.failures[language] = str(exc)
                continue
            patterns = extract_deps_patterns(text.splitlines())
            report.counts[language] = len(patterns)
            if patterns:
                config.languages[language.lower()] = Language(deps=patterns)
        config.languages[COMMON_GROUP] = Language(deps=list(COMMON_PATTERNS))
        return report

    def _http_fetch(self, language: str) -> str:
        url = TEMPLATE_URL.format(language=language)
        request = Request(url, headers={"User-Agent": "igloc"})
        try:
            with urlopen(request, timeout=self.timeout) as response:  # type: ignore[arg-type]
                return response.read().decode("utf-8", "replace")
        except HTTPError as exc:
            raise SyncError(f"HTTP {exc.code}") from exc
        except URLError as exc:
            raise SyncError(str(exc.reason)) from exc
        except OSError as exc:
            raise SyncError(str(exc)) from exc


def extract_deps_patterns(lines: Iterable[str]) -> List[str]:
    """Return unique dependency directory patterns found in gitignore ``lines``."""
    patterns: List[str] = []
    seen: set[str] = set()
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        pattern = _deps_pattern(line)
        if pattern and pattern not in seen:
            seen.add(pattern)
            patterns.append(pattern)
    return patterns


def _deps_pattern(line: str) -> Optional[str]:
    if line.startswith("!"):
        return None
    line = line.removeprefix("/")

    lowered = line.lower()
    for keyword in _DEPS_KEYWORDS:
        if keyword not in lowered:
            continue
        if line.endswith("/"):
            return line
        # Only bare names look like directories; wildcard or dotted entries are file patterns.
        if "*" not in line and "." not in line:
            return f"{line}/"

    if line.endswith("/"):
        name = line[:-1].removeprefix("**/")
        if "*" in name:
            return None
        return line
    return None


__all__ = [
    "COMMON_PATTERNS",
    "DEFAULT_LANGUAGES",
    "PatternSyncer",
    "SyncReport",
    "extract_deps_patterns",
]
