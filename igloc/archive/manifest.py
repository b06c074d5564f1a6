"""YAML encoding of the export manifest."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Dict, List

import yaml

from ..errors import ManifestError
from ..models import Manifest, RepoExport

MANIFEST_NAME = "manifest.yaml"
PATTERNS_NAME = "patterns.yaml"
FILES_PREFIX = "files"
SUPPORTED_VERSIONS = frozenset({1})


def dump_manifest(manifest: Manifest) -> str:
    payload: Dict[str, Any] = {
        "version": manifest.version,
        "created_at": manifest.created_at,
    }
    if manifest.machine:
        payload["machine"] = manifest.machine
    payload["repos"] = [
        {"name": repo.name, "path": repo.path, "files": list(repo.files)}
        for repo in manifest.repos
    ]
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)


def load_manifest(text: str) -> Manifest:
    """Parse manifest.yaml, rejecting versions this reader does not understand."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ManifestError(f"Failed to parse {MANIFEST_NAME}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{MANIFEST_NAME} must contain a mapping at the root")

    version = data.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise ManifestError(f"{MANIFEST_NAME} has no integer version field")
    if version not in SUPPORTED_VERSIONS:
        raise ManifestError(f"Unsupported manifest version {version}")

    machine = data.get("machine")
    return Manifest(
        version=version,
        created_at=_parse_timestamp(data.get("created_at")),
        machine=str(machine) if machine else None,
        repos=_parse_repos(data.get("repos")),
    )


def archive_member(repo_name: str, file_path: str) -> str:
    """Return the archive entry name holding ``file_path`` of ``repo_name``."""
    return "/".join((FILES_PREFIX, repo_name, file_path.replace("\\", "/")))


def _parse_repos(value: Any) -> List[RepoExport]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ManifestError("repos must be a list")
    repos: List[RepoExport] = []
    for entry in value:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ManifestError("each repo entry needs a name")
        files = entry.get("files") or []
        if not isinstance(files, list):
            raise ManifestError(f"files of repo {entry['name']} must be a list")
        repos.append(
            RepoExport(
                name=str(entry["name"]),
                path=str(entry.get("path") or ""),
                files=[str(item) for item in files],
            )
        )
    return repos


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ManifestError(f"Invalid created_at timestamp: {value}") from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise ManifestError("created_at is missing")


__all__ = [
    "FILES_PREFIX",
    "MANIFEST_NAME",
    "PATTERNS_NAME",
    "archive_member",
    "dump_manifest",
    "load_manifest",
]
