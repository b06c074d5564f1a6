"""Tests for igloc.orchestrator."""

from __future__ import annotations

import hashlib
import zipfile
from pathlib import Path

import pytest

from igloc.archive.manifest import load_manifest
from igloc.archive.restorer import RestoreSettings
from igloc.config import Language, PatternsConfig
from igloc.errors import PathResolutionError
from igloc.orchestrator import Orchestrator
from tests._fixtures.repo_builder import RepoBuilder


def _orchestrator(repo_builder: RepoBuilder, patterns: PatternsConfig | None = None) -> Orchestrator:
    return Orchestrator(resolver=repo_builder.resolver(), patterns=patterns)


def test_run_scan_single_repository(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("api", {".env": "A=1\n", "build/output.log": "log\n"})

    results = _orchestrator(repo_builder).run_scan(root)

    assert len(results) == 1
    assert [item.path for item in results[0].ignored_files] == [".env"]


def test_run_scan_single_keeps_empty_result(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("api", {"build/output.log": "log\n"})

    results = _orchestrator(repo_builder).run_scan(root)

    assert len(results) == 1
    assert results[0].ignored_files == ()


def test_run_scan_recursive_drops_empty_repositories(repo_builder: RepoBuilder) -> None:
    repo_builder.repo("work/api", {".env": "A=1\n"})
    repo_builder.repo("work/docs", {"build/site.html": "<html/>\n"})
    repo_builder.repo("work/web", {"secrets.json": "{}\n", ".idea/workspace.xml": "<x/>\n"})

    orchestrator = _orchestrator(repo_builder)
    secrets_only = orchestrator.run_scan(repo_builder.base / "work", recursive=True)
    everything = orchestrator.run_scan(repo_builder.base / "work", recursive=True, show_all=True)

    assert [Path(result.root_path).name for result in secrets_only] == ["api", "web"]
    assert [Path(result.root_path).name for result in everything] == ["api", "docs", "web"]


def test_run_scan_propagates_missing_root(tmp_path: Path, repo_builder: RepoBuilder) -> None:
    with pytest.raises(PathResolutionError):
        _orchestrator(repo_builder).run_scan(tmp_path / "missing", recursive=True)


def test_synced_patterns_extend_dependency_exclusion(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("api", {".env": "A=1\n", "deps/lib/.env": "B=2\n"})
    patterns = PatternsConfig(languages={"elixir": Language(deps=["deps/"])})

    plain = _orchestrator(repo_builder).run_scan(root)
    synced = _orchestrator(repo_builder, patterns).run_scan(root)
    included = _orchestrator(repo_builder, patterns).run_scan(root, include_deps=True)

    assert [item.path for item in plain[0].ignored_files] == [".env", "deps/lib/.env"]
    assert [item.path for item in synced[0].ignored_files] == [".env"]
    assert [item.path for item in included[0].ignored_files] == [".env", "deps/lib/.env"]


def test_export_contains_only_secret_files(tmp_path: Path, repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("api", {".env": "A=1\n", "build/output.log": "log\n"})
    output = tmp_path / "backup.zip"

    outcome = _orchestrator(repo_builder).run_export(output, root)

    assert outcome.written is True
    assert outcome.archive_size == output.stat().st_size
    assert outcome.file_count == 1
    with zipfile.ZipFile(output) as archive:
        names = archive.namelist()
        manifest = load_manifest(archive.read("manifest.yaml").decode("utf-8"))
    assert names == ["manifest.yaml", "files/api/.env"]
    assert manifest.repos[0].name == "api"
    assert manifest.repos[0].path == str(root.resolve())
    assert manifest.repos[0].files == [".env"]


def test_export_without_secrets_writes_nothing(tmp_path: Path, repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("api", {"build/output.log": "log\n"})
    output = tmp_path / "backup.zip"

    outcome = _orchestrator(repo_builder).run_export(output, root)

    assert outcome.written is False
    assert outcome.repos == []
    assert not output.exists()


def test_export_disambiguates_repositories_with_same_name(
    tmp_path: Path, repo_builder: RepoBuilder
) -> None:
    first = repo_builder.repo("team-a/api", {".env": "A=1\n"})
    second = repo_builder.repo("team-b/api", {".env": "B=2\n"})

    repos = _orchestrator(repo_builder).collect_exports(repo_builder.base, recursive=True)

    digest = hashlib.sha256(str(second.resolve()).encode("utf-8")).hexdigest()[:8]
    assert [repo.name for repo in repos] == ["api", f"api-{digest}"]
    assert [repo.path for repo in repos] == [str(first.resolve()), str(second.resolve())]


def test_export_then_import_round_trip(tmp_path: Path, repo_builder: RepoBuilder) -> None:
    repo_builder.repo(
        "src/api",
        {".env": "API_KEY=1\n", "config/credentials.json": "{}\n", "dist/bundle.js": "x\n"},
    )
    repo_builder.repo("src/web", {".env.local": "WEB=1\n"})
    output = tmp_path / "backup.zip"
    orchestrator = _orchestrator(repo_builder)

    exported = orchestrator.run_export(output, repo_builder.base / "src", recursive=True)
    planned_seen: list[int] = []
    report = orchestrator.run_import(
        output,
        RestoreSettings(base_dir=tmp_path / "restored"),
        confirm=lambda _: True,
        on_plan=lambda manifest, planned: planned_seen.append(len(planned)),
    )

    assert exported.file_count == 3
    assert planned_seen == [3]
    assert report.written == 3
    assert report.failed == 0
    restored = tmp_path / "restored"
    assert (restored / "api" / ".env").read_text(encoding="utf-8") == "API_KEY=1\n"
    assert (restored / "api" / "config" / "credentials.json").read_text(encoding="utf-8") == "{}\n"
    assert (restored / "web" / ".env.local").read_text(encoding="utf-8") == "WEB=1\n"
    assert not (restored / "api" / "dist").exists()


def test_common_patterns_do_not_hide_ide_files(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("api", {".env": "A=1\n", ".idea/workspace.xml": "<x/>\n"})
    patterns = PatternsConfig(languages={"common": Language(deps=[".idea/", ".vscode/"])})

    results = _orchestrator(repo_builder, patterns).run_scan(root, show_all=True)

    categories = {item.path: item.category.value for item in results[0].ignored_files}
    assert categories == {".env": "env", ".idea/workspace.xml": "ide"}
