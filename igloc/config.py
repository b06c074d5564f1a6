"""Configuration loading for igloc (~/.config/igloc/patterns.yaml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_DIR_ENV = "IGLOC_CONFIG_DIR"
PATTERNS_FILENAME = "patterns.yaml"
PATTERNS_VERSION = 1
# Tooling and editor folders synced alongside the language groups.
COMMON_GROUP = "common"


@dataclass
class Language:
    """Dependency directory patterns collected for one language."""

    deps: List[str] = field(default_factory=list)


@dataclass
class PatternsConfig:
    """Represents the synced dependency patterns stored in patterns.yaml."""

    version: int = PATTERNS_VERSION
    updated_at: Optional[datetime] = None
    languages: Dict[str, Language] = field(default_factory=dict)

    def all_deps_dirs(self) -> List[str]:
        """Return every pattern across languages, de-duplicated in first-seen order."""
        return _unique_deps(self.languages.values())

    def dependency_dirs(self) -> List[str]:
        """Like :meth:`all_deps_dirs` without the common group.

        The common group lists editor and tooling folders (``.idea/``,
        ``tmp/``), which scans keep reporting.
        """
        return _unique_deps(
            language for name, language in self.languages.items() if name != COMMON_GROUP
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "updated_at": self.updated_at,
            "languages": {
                name: {"deps": list(language.deps)}
                for name, language in self.languages.items()
            },
        }


def default_config_dir() -> Path:
    """Return the igloc configuration directory, honouring ``IGLOC_CONFIG_DIR``."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "igloc"


def patterns_file_path() -> Path:
    return default_config_dir() / PATTERNS_FILENAME


def load_patterns(path: Path | None = None) -> Optional[PatternsConfig]:
    """Load patterns from disk, returning None when no file has been synced yet."""
    config_file = path or patterns_file_path()
    try:
        text = config_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ConfigError(f"Failed to read {config_file}: {exc}") from exc
    return parse_patterns(text, source=str(config_file))


def parse_patterns(text: str, *, source: str = PATTERNS_FILENAME) -> PatternsConfig:
    if not text.strip():
        return PatternsConfig()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {source}: {exc}") from exc
    if data is None:
        return PatternsConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{source} must contain a mapping at the root")

    languages: Dict[str, Language] = {}
    for name, entry in _as_dict(data.get("languages")).items():
        deps = _as_str_list(_as_dict(entry).get("deps"))
        languages[str(name)] = Language(deps=deps)

    return PatternsConfig(
        version=_as_int(data.get("version")) or PATTERNS_VERSION,
        updated_at=_as_datetime(data.get("updated_at")),
        languages=languages,
    )


def save_patterns(config: PatternsConfig, path: Path | None = None) -> Path:
    """Write ``config`` as YAML, creating the configuration directory if needed."""
    config_file = path or patterns_file_path()
    if config.updated_at is None:
        config.updated_at = datetime.now(UTC)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    text = yaml.safe_dump(config.to_dict(), sort_keys=False)
    config_file.write_text(text, encoding="utf-8")
    return config_file


def normalize_dep_pattern(pattern: str) -> str:
    """Reduce a synced pattern such as ``**/node_modules/`` to a path prefix."""
    value = pattern.strip()
    while value.startswith("**/"):
        value = value[3:]
    return value.strip("/")


def _unique_deps(languages: Iterable[Language]) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for language in languages:
        for dep in language.deps:
            if dep not in seen:
                seen.add(dep)
                result.append(dep)
    return result


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "COMMON_GROUP",
    "CONFIG_DIR_ENV",
    "Language",
    "PatternsConfig",
    "default_config_dir",
    "load_patterns",
    "normalize_dep_pattern",
    "parse_patterns",
    "patterns_file_path",
    "save_patterns",
]
