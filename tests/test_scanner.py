"""Tests for igloc.scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from igloc.errors import PathResolutionError
from igloc.models import Category
from igloc.scanner import Scanner, ScanSettings
from tests._fixtures.repo_builder import RepoBuilder


def test_scan_keeps_only_secrets_by_default(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo(
        "app",
        {
            ".env": "TOKEN=1\n",
            "build/output.log": "log\n",
            "certs/server.pem": "-----BEGIN-----\n",
        },
    )

    result = Scanner(resolver=repo_builder.resolver()).scan(root)

    assert result.root_path == str(root.resolve())
    assert [item.path for item in result.ignored_files] == [".env", "certs/server.pem"]
    assert result.secret_count == 2
    assert result.total_size == len("TOKEN=1\n") + len("-----BEGIN-----\n")


def test_scan_show_all_includes_non_secrets(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("app", {".env": "A=1\n", "build/output.log": "log\n"})

    scanner = Scanner(ScanSettings(show_all=True), resolver=repo_builder.resolver())
    result = scanner.scan(root)

    files = {item.path: item for item in result.ignored_files}
    assert files["build/output.log"].category is Category.BUILD
    assert files["build/output.log"].is_secret is False
    assert result.secret_count == 1
    assert result.total_size == sum(item.size for item in result.ignored_files)


def test_scan_preserves_resolver_order(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo(
        "app",
        {"z.token": "1", "a/.env": "2", "m/password.txt": "3"},
        ignored=["z.token", "a/.env", "m/password.txt"],
    )

    result = Scanner(resolver=repo_builder.resolver()).scan(root)

    assert [item.path for item in result.ignored_files] == ["z.token", "a/.env", "m/password.txt"]


def test_scan_excludes_dependency_directories(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo(
        "app",
        {".env": "A=1\n", "node_modules/pkg/.env": "B=2\n"},
    )

    excluded = Scanner(resolver=repo_builder.resolver()).scan(root)
    included = Scanner(
        ScanSettings(exclude_deps=False), resolver=repo_builder.resolver()
    ).scan(root)

    assert [item.path for item in excluded.ignored_files] == [".env"]
    dep_file = next(item for item in included.ignored_files if item.path == "node_modules/pkg/.env")
    assert dep_file.category is Category.ENV
    assert dep_file.is_secret is True


def test_scan_applies_extra_dependency_patterns(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo(
        "app",
        {".env": "A=1\n", "_build/prod/.env": "B=2\n", "pkgs/deep/.tox/.env": "C=3\n"},
    )

    settings = ScanSettings(extra_dep_dirs=("_build/", "**/.tox/"))
    result = Scanner(settings, resolver=repo_builder.resolver()).scan(root)

    assert [item.path for item in result.ignored_files] == [".env"]


def test_scan_skips_directories_and_vanished_paths(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo(
        "app",
        {".env": "A=1\n", "secrets/token.txt": "x"},
        ignored=[".env", "secrets", "gone/.env.local"],
    )

    result = Scanner(
        ScanSettings(show_all=True), resolver=repo_builder.resolver()
    ).scan(root)

    assert [item.path for item in result.ignored_files] == [".env"]


def test_scan_of_non_repository_is_empty(tmp_path: Path, repo_builder: RepoBuilder) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    (plain / ".env").write_text("A=1\n", encoding="utf-8")

    result = Scanner(resolver=repo_builder.resolver()).scan(plain)

    assert result.ignored_files == ()
    assert result.total_size == 0
    assert result.secret_count == 0


def test_scan_rejects_missing_root(tmp_path: Path, repo_builder: RepoBuilder) -> None:
    missing = tmp_path / "missing"

    with pytest.raises(PathResolutionError) as excinfo:
        Scanner(resolver=repo_builder.resolver()).scan(missing)
    assert str(missing) in str(excinfo.value)


def test_env_and_key_files_are_always_secret(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo(
        "app",
        {".env": "1", "server.key": "2", "build/x.o": "3", "cache/blob": "4", ".idea/ws.xml": "5"},
    )

    result = Scanner(ScanSettings(show_all=True), resolver=repo_builder.resolver()).scan(root)

    for item in result.ignored_files:
        if item.category in {Category.ENV, Category.KEY}:
            assert item.is_secret


def test_filter_category_uses_decided_flags(repo_builder: RepoBuilder) -> None:
    root = repo_builder.repo("app", {".env": "1", "server.key": "2", "dist/app.js": "3"})

    result = Scanner(ScanSettings(show_all=True), resolver=repo_builder.resolver()).scan(root)

    assert [item.path for item in result.filter_category("key")] == ["server.key"]
    assert len(result.filter_category(None)) == 3
