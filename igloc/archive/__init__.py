"""Portable migration archives: export builder, manifest codec and restorer."""

from .builder import ArchiveBuilder, ExportFailure
from .manifest import dump_manifest, load_manifest
from .restorer import (
    ArchiveRestorer,
    FileOutcome,
    PlannedFile,
    RestoreReport,
    RestoreSettings,
    prompt_confirmation,
)

__all__ = [
    "ArchiveBuilder",
    "ArchiveRestorer",
    "ExportFailure",
    "FileOutcome",
    "PlannedFile",
    "RestoreReport",
    "RestoreSettings",
    "dump_manifest",
    "load_manifest",
    "prompt_confirmation",
]
