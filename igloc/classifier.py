"""Filename heuristics that sort ignored files into categories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from .models import Category

_ENV_PREFIXES: tuple[str, ...] = (".env", "env.")

_KEY_KEYWORDS: tuple[str, ...] = (
    "key",
    "secret",
    "credential",
    "token",
    "password",
    "private",
    "pem",
    "p12",
    "pfx",
    "keystore",
)

_KEY_SUFFIXES: tuple[str, ...] = (".pem", ".key", ".p12", ".pfx")

_CONFIG_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml", ".toml", ".ini")

_CONFIG_KEYWORDS: tuple[str, ...] = ("config", "setting")

_BUILD_DIRS: tuple[str, ...] = (
    "node_modules",
    "dist",
    "build",
    ".next",
    "__pycache__",
    "target",
    "bin",
    "obj",
)

_IDE_DIRS: tuple[str, ...] = (".idea", ".vscode", ".vs")

_SECRET_KEYWORDS: tuple[str, ...] = (
    "secret",
    "credential",
    "password",
    "token",
    "auth",
    "api_key",
    "apikey",
    ".npmrc",
    ".netrc",
    "id_rsa",
    "id_dsa",
    "id_ecdsa",
    "id_ed25519",
)

_ALWAYS_SECRET = frozenset({Category.ENV, Category.KEY})


@dataclass(frozen=True)
class Classification:
    """Category and secret flag decided for a single path."""

    category: Category
    is_secret: bool


def classify(path: str) -> Classification:
    """Classify ``path`` (relative to its repository root) by name alone."""
    normalized = path.replace("\\", "/")
    category = categorize(normalized)
    return Classification(category=category, is_secret=is_secret(normalized, category))


def categorize(path: str) -> Category:
    name = _basename(path)
    suffix = PurePosixPath(name).suffix

    if name.startswith(_ENV_PREFIXES):
        return Category.ENV

    if any(keyword in name for keyword in _KEY_KEYWORDS) or suffix in _KEY_SUFFIXES:
        return Category.KEY

    if suffix in _CONFIG_SUFFIXES and any(keyword in name for keyword in _CONFIG_KEYWORDS):
        return Category.CONFIG

    segments = path.split("/")
    if any(directory in segments for directory in _BUILD_DIRS):
        return Category.BUILD

    if "cache" in path or (name.startswith(".") and "cache" in name):
        return Category.CACHE

    for directory in _IDE_DIRS:
        if path == directory or path.startswith(f"{directory}/"):
            return Category.IDE

    return Category.OTHER


def is_secret(path: str, category: Category) -> bool:
    """Return True when the file likely holds credentials or other secrets."""
    if category in _ALWAYS_SECRET:
        return True
    name = _basename(path)
    return any(keyword in name for keyword in _SECRET_KEYWORDS)


def _basename(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1].lower()


__all__ = ["Classification", "categorize", "classify", "is_secret"]
