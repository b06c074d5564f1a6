"""Render scan, export and import results for the terminal."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader

from .archive.restorer import PlannedFile, RestoreReport
from .models import Category, IgnoredFile, Manifest, ScanResult
from .orchestrator import ExportOutcome

CATEGORY_ICONS: Mapping[Category, str] = {
    Category.ENV: "🔑",
    Category.KEY: "🔐",
    Category.CONFIG: "⚙️",
    Category.BUILD: "📦",
    Category.CACHE: "💾",
    Category.IDE: "🖥️",
    Category.OTHER: "📄",
}
DEFAULT_ICON = "📄"
SECRET_MARK = "🔐"

_SIZE_UNITS = "KMGTPE"


def category_icon(category: Category | str) -> str:
    try:
        return CATEGORY_ICONS[Category(category)]
    except ValueError:
        return DEFAULT_ICON


def format_size(num_bytes: int) -> str:
    """Return a human readable size using binary units (``1.5 KB``)."""
    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    div, exp = unit, 0
    n = num_bytes // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{num_bytes / div:.1f} {_SIZE_UNITS[exp]}B"


class ReportRenderer:
    """Formats results through the Jinja templates shipped with igloc."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories = []
        if templates_dir is not None:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_scan(self, result: ScanResult, category: str | None = None) -> str:
        files = result.filter_category(category)
        grouped: Dict[Category, List[IgnoredFile]] = defaultdict(list)
        for item in files:
            grouped[item.category].append(item)

        groups = [
            {
                "icon": category_icon(cat),
                "label": cat.value.upper(),
                "files": [
                    {"path": item.path, "mark": f" {SECRET_MARK}" if item.is_secret else ""}
                    for item in sorted(grouped[cat], key=lambda entry: entry.path)
                ],
            }
            for cat in sorted(grouped, key=lambda entry: entry.value)
        ]
        secret_count = sum(1 for item in files if item.is_secret)
        return self._render(
            "scan_result.j2",
            root=result.root_path,
            total_files=len(result.ignored_files),
            category=Category(category).value if category else None,
            groups=groups,
            shown=len(files),
            total_size=format_size(sum(item.size for item in files)),
            secrets_note=f" ({SECRET_MARK} {secret_count} secrets)" if secret_count else "",
        )

    def render_scan_summary(self, results: Sequence[ScanResult]) -> str:
        secrets = sum(result.secret_count for result in results)
        return self._render(
            "scan_summary.j2",
            repo_count=len(results),
            file_count=sum(len(result.ignored_files) for result in results),
            secrets_note=f", {secrets} secrets" if secrets else "",
        )

    def render_import_plan(self, manifest: Manifest, planned: Sequence[PlannedFile]) -> str:
        by_repo: Dict[str, List[Dict[str, str]]] = defaultdict(list)
        for item in planned:
            by_repo[item.repo].append(
                {"file": item.file, "status": " (overwrite)" if item.exists else ""}
            )
        conflicts = sum(1 for item in planned if item.exists)
        return self._render(
            "import_plan.j2",
            created_at=manifest.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            machine=manifest.machine,
            repo_count=len(manifest.repos),
            repos=[{"name": repo.name, "items": by_repo.get(repo.name, [])} for repo in manifest.repos],
            total=len(planned),
            conflicts_note=f" ({conflicts} will be overwritten)" if conflicts else "",
        )

    def render_import_summary(self, report: RestoreReport) -> str:
        outcomes = [
            {
                "symbol": "✓" if outcome.ok else "✗",
                "text": str(outcome.destination) if outcome.ok else f"{outcome.repo}/{outcome.file}: {outcome.error}",
            }
            for outcome in report.outcomes
        ]
        return self._render(
            "import_summary.j2",
            outcomes=outcomes,
            written=report.written,
            failed=report.failed,
            patterns_note=", patterns.yaml restored" if report.patterns_restored else "",
        )

    def render_export_summary(self, outcome: ExportOutcome) -> str:
        return self._render(
            "export_summary.j2",
            file_count=outcome.file_count,
            repo_count=len(outcome.repos),
            repos=outcome.repos,
            failures=outcome.failures,
            output_path=outcome.output_path,
            size=format_size(outcome.archive_size or 0),
        )

    def _render(self, template_name: str, **context: object) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).rstrip() + "\n"


__all__ = [
    "CATEGORY_ICONS",
    "DEFAULT_ICON",
    "ReportRenderer",
    "category_icon",
    "format_size",
]
