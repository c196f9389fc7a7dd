"""Aggregation of parsed coverage into LCOV tracefile records.

A tracefile section for one raw data file looks like::

    TN:<test name>
    SF:<absolute path to the source file>
    FN:<line number of function start>,<function name>
    DA:<line number>,<execution count>
    LF:<number of instrumented lines>
    LH:<number of lines with an execution count greater than 0>
    end_of_record

with one ``SF`` ... ``end_of_record`` block per source file.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, TextIO

from covinfo.errors import DataIOError
from covinfo.models.coverage import (
    AnnotatedLine,
    FunctionEntry,
    LineCoverage,
    SourceFileRecord,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path
    from types import TracebackType

logger = logging.getLogger(__name__)

_END_OF_RECORD = "end_of_record"

# Source names come from raw filesystem bytes; undecodable bytes are carried
# through as surrogates and written back unchanged.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def build_record(
    path: str,
    functions: Sequence[FunctionEntry],
    annotated_lines: Iterable[AnnotatedLine],
) -> SourceFileRecord:
    """Combine metadata functions and annotated lines into a record.

    Lines are numbered from 1; only instrumented lines are kept.
    """
    lines = [
        LineCoverage(line_number=number, execution_count=line.count or 0)
        for number, line in enumerate(annotated_lines, start=1)
        if line.instrumented
    ]
    return SourceFileRecord(path=path, functions=list(functions), lines=lines)


def format_record(record: SourceFileRecord) -> str:
    """Serialize *record* as one complete tracefile block."""
    out = [f"SF:{record.path}"]
    out.extend(f"FN:{function.line},{function.name}" for function in record.functions)
    out.extend(f"DA:{line.line_number},{line.execution_count}" for line in record.lines)
    out.append(f"LF:{record.lines_found}")
    out.append(f"LH:{record.lines_hit}")
    out.append(_END_OF_RECORD)
    return "\n".join(out) + "\n"


class TracefileWriter:
    """Write tracefile sections to a file or an already open text stream.

    Use as a context manager. File destinations are opened on enter and
    closed on exit; streams passed in (such as ``sys.stdout``) are only
    flushed. Each record is written with a single call and flushed, so an
    interrupted run leaves complete records only.

    Output is UTF-8. Source names that are not valid UTF-8 keep their original
    bytes, also on standard output.
    """

    def __init__(self, destination: str | Path | TextIO, *, append: bool = False) -> None:
        """Initialize the writer.

        Args:
            destination: Path of the tracefile, or an open text stream.
            append: Append to an existing file instead of truncating it.
        """
        self._destination = destination
        self._append = append
        self._handle: TextIO | None = None
        self._owns_handle = False
        self.records_written = 0

    @property
    def name(self) -> str:
        """Human-readable name of the destination."""
        if isinstance(self._destination, (str, os.PathLike)):
            return os.fspath(self._destination)
        return str(getattr(self._destination, "name", "<stream>"))

    def __enter__(self) -> TracefileWriter:
        if isinstance(self._destination, (str, os.PathLike)):
            mode = "a" if self._append else "w"
            try:
                self._handle = open(  # noqa: SIM115
                    self._destination, mode, encoding=_ENCODING, errors=_ERRORS
                )
            except OSError as exc:
                action = "write to" if self._append else "create"
                raise DataIOError(f"cannot {action} {self.name}: {exc.strerror}") from exc
            self._owns_handle = True
        else:
            self._handle = self._destination
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._handle is None:
            return
        if self._owns_handle:
            self._handle.close()
        else:
            self._handle.flush()
        self._handle = None

    def _write(self, text: str) -> None:
        if self._handle is None:
            raise RuntimeError("TracefileWriter used outside of its context")
        try:
            buffer = None if self._owns_handle else getattr(self._handle, "buffer", None)
            if buffer is None:
                self._handle.write(text)
            else:
                self._handle.flush()
                buffer.write(text.encode(_ENCODING, _ERRORS))
                buffer.flush()
            self._handle.flush()
        except OSError as exc:
            raise DataIOError(f"cannot write to {self.name}: {exc.strerror}") from exc
        except UnicodeEncodeError as exc:
            raise DataIOError(f"cannot encode output for {self.name}: {exc.reason}") from exc

    def write_test_name(self, test_name: str) -> None:
        """Write the ``TN`` line that opens a raw data file's section."""
        self._write(f"TN:{test_name}\n")

    def write_record(self, record: SourceFileRecord) -> None:
        """Write one complete source file record."""
        self._write(format_record(record))
        self.records_written += 1
        logger.debug(
            "Wrote record for %s (LF=%d, LH=%d)",
            record.path,
            record.lines_found,
            record.lines_hit,
        )


def create_empty(path: str | Path) -> None:
    """Create (or truncate) *path* so later sections can be appended to it."""
    try:
        with open(path, "w", encoding=_ENCODING):
            pass
    except OSError as exc:
        raise DataIOError(f"cannot create {path}: {exc.strerror}") from exc
