"""Data models for covinfo."""

from __future__ import annotations

from covinfo.models.coverage import (
    AnnotatedLine,
    FunctionEntry,
    LineCoverage,
    MetadataMapping,
    RawDataFile,
    RunSummary,
    SourceFileRecord,
)

__all__ = [
    "AnnotatedLine",
    "FunctionEntry",
    "LineCoverage",
    "MetadataMapping",
    "RawDataFile",
    "RunSummary",
    "SourceFileRecord",
]
