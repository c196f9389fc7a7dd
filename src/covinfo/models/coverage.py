"""Data models for raw coverage inputs and aggregated records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple


class FunctionEntry(NamedTuple):
    """A function declared in a metadata file."""

    name: str
    line: int


MetadataMapping = dict[str, list[FunctionEntry]]
"""Absolute source path -> functions in order of appearance."""


@dataclass(frozen=True)
class RawDataFile:
    """One compiler-produced raw coverage data file (``.da``)."""

    path: str
    """Absolute, normalized path to the data file."""

    directory: str
    """Directory containing the data file."""

    basename: str
    """File name without its extension."""


@dataclass(frozen=True)
class AnnotatedLine:
    """One source line decoded from an annotated (``.gcov``) file."""

    instrumented: bool
    count: int | None
    """Execution count; ``None`` for lines without instrumentation."""

    text: str


@dataclass
class LineCoverage:
    """Execution count for a single instrumented line."""

    line_number: int
    execution_count: int

    @property
    def is_covered(self) -> bool:
        """Return True if this line was executed at least once."""
        return self.execution_count > 0


@dataclass
class SourceFileRecord:
    """Aggregated coverage for one source file of one raw data file."""

    path: str
    functions: list[FunctionEntry] = field(default_factory=list)
    lines: list[LineCoverage] = field(default_factory=list)

    @property
    def lines_found(self) -> int:
        """Number of instrumented lines."""
        return len(self.lines)

    @property
    def lines_hit(self) -> int:
        """Number of instrumented lines executed at least once."""
        return sum(1 for line in self.lines if line.is_covered)


@dataclass
class RunSummary:
    """Outcome of one extraction run."""

    data_files: int = 0
    """Raw data files processed."""

    records: int = 0
    """Source file records written."""

    warnings: list[str] = field(default_factory=list)
    """Messages of recoverable problems that caused items to be skipped."""
