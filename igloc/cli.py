"""CLI entrypoints for igloc commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from . import __version__
from .archive.restorer import PlannedFile, RestoreSettings
from .config import load_patterns, patterns_file_path, save_patterns
from .errors import ConfigError, IglocError
from .logging import configure_logging, get_logger
from .models import Category, Manifest
from .orchestrator import Orchestrator
from .report import ReportRenderer
from .sync import DEFAULT_LANGUAGES, PatternSyncer

logger = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write debug-level logs to this file.",
    )


def _add_recursive_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="Recursively scan subdirectories for git repositories.",
    )


def _add_include_deps_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--include-deps",
        action="store_true",
        help="Include files in node_modules, vendor and other dependency directories.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="igloc",
        description="Find the git-ignored secrets on this machine and move them to another one.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Scan a directory for gitignored files.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_log_file_option(scan_parser, suppress_default=True)
    scan_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to scan (defaults to current directory).",
    )
    _add_recursive_option(scan_parser)
    scan_parser.add_argument(
        "-a",
        "--all",
        dest="show_all",
        action="store_true",
        help="Show all ignored files, not just secrets.",
    )
    scan_parser.add_argument(
        "-c",
        "--category",
        choices=[category.value for category in Category],
        help="Only show files in this category.",
    )
    _add_include_deps_option(scan_parser)

    export_parser = subparsers.add_parser(
        "export",
        help="Export secret ignored files to a zip archive.",
    )
    _add_verbose_option(export_parser, suppress_default=True)
    _add_log_file_option(export_parser, suppress_default=True)
    export_parser.add_argument("output", help="Path of the zip archive to create.")
    export_parser.add_argument(
        "--path",
        default=".",
        help="Directory to scan (defaults to current directory).",
    )
    _add_recursive_option(export_parser)
    _add_include_deps_option(export_parser)

    import_parser = subparsers.add_parser(
        "import",
        help="Restore files from an archive created by `igloc export`.",
    )
    _add_verbose_option(import_parser, suppress_default=True)
    _add_log_file_option(import_parser, suppress_default=True)
    import_parser.add_argument("archive", help="Path of the zip archive to import.")
    import_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Import without asking for confirmation.",
    )
    import_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be imported without writing anything.",
    )
    import_parser.add_argument(
        "--base",
        default=None,
        help="Base directory for imports (default: original paths or current directory).",
    )

    sync_parser = subparsers.add_parser(
        "sync",
        help="Sync dependency patterns from the github/gitignore templates.",
    )
    _add_verbose_option(sync_parser, suppress_default=True)
    _add_log_file_option(sync_parser, suppress_default=True)
    sync_parser.add_argument(
        "--list",
        action="store_true",
        help="List supported languages and exit.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for igloc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    renderer = ReportRenderer()

    try:
        configure_logging(
            verbose=bool(args.verbose),
            log_file=Path(args.log_file) if args.log_file else None,
        )
        if args.command == "scan":
            _run_scan(args, renderer)
        elif args.command == "export":
            _run_export(args, renderer)
        elif args.command == "import":
            _run_import(args, renderer)
        elif args.command == "sync":
            _run_sync(args)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except IglocError as exc:
        parser.exit(1, f"igloc {args.command} failed: {exc}\nRun with --verbose for more details.\n")
    except KeyboardInterrupt:
        parser.exit(130, "\nInterrupted.\n")


def _orchestrator() -> Orchestrator:
    try:
        patterns = load_patterns()
    except ConfigError as exc:
        logger.warning("Ignoring synced patterns: %s", exc)
        patterns = None
    return Orchestrator(patterns=patterns)


def _run_scan(args: argparse.Namespace, renderer: ReportRenderer) -> None:
    results = _orchestrator().run_scan(
        args.path,
        recursive=bool(args.recursive),
        show_all=bool(args.show_all),
        include_deps=bool(args.include_deps),
    )
    if args.recursive and not results:
        print("No git repositories found with ignored files.")
        return
    for result in results:
        print(renderer.render_scan(result, args.category))
    if args.recursive:
        print(renderer.render_scan_summary(results), end="")


def _run_export(args: argparse.Namespace, renderer: ReportRenderer) -> None:
    scan_path = Path(args.path).expanduser().resolve()
    print(f"Scanning {scan_path}...")
    outcome = _orchestrator().run_export(
        args.output,
        scan_path,
        recursive=bool(args.recursive),
        include_deps=bool(args.include_deps),
    )
    if not outcome.written:
        print("No files to export.")
        return
    print(renderer.render_export_summary(outcome), end="")


def _run_import(args: argparse.Namespace, renderer: ReportRenderer) -> None:
    settings = RestoreSettings(
        base_dir=Path(args.base) if args.base else None,
        dry_run=bool(args.dry_run),
        assume_yes=bool(args.yes),
    )

    def show_plan(manifest: Manifest, planned: List[PlannedFile]) -> None:
        print(renderer.render_import_plan(manifest, planned))

    report = _orchestrator().run_import(args.archive, settings, on_plan=show_plan)
    if report.dry_run:
        print("Dry run - no files were imported.")
        return
    if report.cancelled:
        print("Import cancelled.")
        return
    print(renderer.render_import_summary(report), end="")


def _run_sync(args: argparse.Namespace) -> None:
    if args.list:
        print("Supported languages:")
        for language in DEFAULT_LANGUAGES:
            print(f"  - {language}")
        return

    print("Fetching patterns from github/gitignore...")
    report = PatternSyncer().sync()
    for language in DEFAULT_LANGUAGES:
        if language in report.failures:
            print(f"  {language}: ✗ ({report.failures[language]})")
        elif report.counts.get(language):
            print(f"  {language}: ✓ ({report.counts[language]} patterns)")
        else:
            print(f"  {language}: (no deps patterns)")

    try:
        path = save_patterns(report.config)
    except OSError as exc:
        raise ConfigError(f"Failed to save patterns to {patterns_file_path()}: {exc}") from exc
    print(f"\nSaved to {path}")
    print(
        f"Total: {report.pattern_total} patterns across {len(report.config.languages)} languages"
    )


if __name__ == "__main__":
    main(sys.argv[1:])
