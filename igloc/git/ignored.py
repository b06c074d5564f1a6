"""Ask git which paths in a work tree are ignored."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, List

from ..errors import NotARepositoryError, ToolInvocationError

_IGNORED_MARKER = "!! "


class IgnoredPathResolver:
    """Lists ignored paths by delegating ignore-rule evaluation to git."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner

    def is_repository(self, repo_path: str | Path) -> bool:
        try:
            self._run(["git", "rev-parse", "--git-dir"], cwd=Path(repo_path))
        except subprocess.CalledProcessError:
            return False
        return True

    def resolve(self, repo_path: str | Path) -> List[str]:
        """Return ignored paths relative to ``repo_path`` in git's output order."""
        repo = Path(repo_path)
        if not self.is_repository(repo):
            raise NotARepositoryError(str(repo))

        # Porcelain paths are relative to the work-tree top, not to repo_path.
        prefix = self._capture(["git", "rev-parse", "--show-prefix"], repo).strip()
        args = ["git", "status", "--ignored", "--porcelain"]
        if prefix:
            args += ["--", "."]
        ignored = parse_porcelain_ignored(self._capture(args, repo))
        if not prefix:
            return ignored
        return [path[len(prefix):] for path in ignored if path.startswith(prefix)]

    # ------------------------------------------------------------------
    # Internals

    def _capture(self, args: List[str], repo: Path) -> str:
        try:
            return self._run(args, cwd=repo, capture_output=True)
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            raise ToolInvocationError(args, stderr or f"exit status {exc.returncode}") from exc

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        arg_list = list(args)
        try:
            return self._runner(arg_list, cwd=cwd, capture_output=capture_output)
        except FileNotFoundError as exc:
            raise ToolInvocationError(arg_list, "git executable not found") from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout if capture_output else ""


def parse_porcelain_ignored(output: str) -> List[str]:
    """Extract ignored paths from ``git status --ignored --porcelain`` output."""
    ignored: List[str] = []
    for line in output.splitlines():
        if not line.startswith(_IGNORED_MARKER):
            continue
        path = _unquote(line[len(_IGNORED_MARKER):])
        if path.endswith("/"):
            path = path[:-1]
        if path:
            ignored.append(path)
    return ignored


def _unquote(path: str) -> str:
    # git wraps paths with unusual characters in C-style quotes (core.quotePath).
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    inner = path[1:-1]
    decoded = inner.encode("ascii", "backslashreplace").decode("unicode_escape")
    try:
        raw = decoded.encode("latin-1")
    except UnicodeEncodeError:
        return decoded
    return raw.decode("utf-8", "surrogateescape")


__all__ = ["IgnoredPathResolver", "parse_porcelain_ignored"]
