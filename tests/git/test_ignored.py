"""Tests for the git ignored-path resolver."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from igloc.errors import NotARepositoryError, ToolInvocationError
from igloc.git.ignored import IgnoredPathResolver, parse_porcelain_ignored


def test_parse_porcelain_keeps_only_ignored_entries() -> None:
    output = "\n".join(
        [
            " M src/app.py",
            "?? scratch.txt",
            "!! .env",
            "!! node_modules/",
            "!! config/local.yaml",
        ]
    )

    assert parse_porcelain_ignored(output) == [".env", "node_modules", "config/local.yaml"]


def test_parse_porcelain_unquotes_special_paths() -> None:
    output = '!! "caf\\303\\251.env"\n!! "with space/"\n'

    assert parse_porcelain_ignored(output) == ["café.env", "with space"]


def test_resolver_runs_git_in_repository(tmp_path: Path) -> None:
    calls: list[tuple[list[str], Path]] = []

    def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
        calls.append((list(args), Path(cwd)))
        if args[:2] == ["git", "status"]:
            return "!! .env\n!! dist/\n"
        return ""

    resolver = IgnoredPathResolver(runner=runner)
    result = resolver.resolve(tmp_path)

    assert result == [".env", "dist"]
    assert calls[0] == (["git", "rev-parse", "--git-dir"], tmp_path)
    assert calls[1] == (["git", "rev-parse", "--show-prefix"], tmp_path)
    assert calls[2] == (["git", "status", "--ignored", "--porcelain"], tmp_path)


def test_resolver_reports_paths_relative_to_subdirectory(tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
        calls.append(list(args))
        if args == ["git", "rev-parse", "--show-prefix"]:
            return "api/\n"
        if args[:2] == ["git", "status"]:
            return "!! api/.env\n!! api/dist/\n!! web/.env\n"
        return ""

    result = IgnoredPathResolver(runner=runner).resolve(tmp_path)

    assert result == [".env", "dist"]
    assert calls[-1] == ["git", "status", "--ignored", "--porcelain", "--", "."]


def test_resolver_reports_non_repository(tmp_path: Path) -> None:
    def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
        raise subprocess.CalledProcessError(128, list(args), stderr="fatal: not a git repository")

    resolver = IgnoredPathResolver(runner=runner)

    assert resolver.is_repository(tmp_path) is False
    with pytest.raises(NotARepositoryError):
        resolver.resolve(tmp_path)


def test_resolver_wraps_status_failures(tmp_path: Path) -> None:
    def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
        if args[:2] == ["git", "status"]:
            raise subprocess.CalledProcessError(1, list(args), stderr="index corrupt\n")
        return ""

    resolver = IgnoredPathResolver(runner=runner)

    with pytest.raises(ToolInvocationError) as excinfo:
        resolver.resolve(tmp_path)
    assert "index corrupt" in str(excinfo.value)


def test_resolver_reports_missing_git(tmp_path: Path) -> None:
    def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
        raise FileNotFoundError("git")

    resolver = IgnoredPathResolver(runner=runner)

    with pytest.raises(ToolInvocationError):
        resolver.resolve(tmp_path)
