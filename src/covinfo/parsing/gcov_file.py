"""Parser for the annotated source listings written by gcov (``.gcov``).

Each physical line of a ``.gcov`` file corresponds to one source line::

    \\t\\tint x;                       not instrumented
            5    foo();               executed 5 times
        ######    bar();              instrumented, never executed

The first 16 columns hold the right-justified execution count (or a run of
``#`` for zero), the remainder is the source text.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from covinfo.errors import DataIOError, FormatError
from covinfo.models.coverage import AnnotatedLine

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_UNINSTRUMENTED_PREFIX = "\t\t"
_COUNT_FIELD_WIDTH = 16
_ZERO_COUNT_RE = re.compile(r"^#+$")


def parse_gcov_line(line: str) -> AnnotatedLine:
    """Decode one line of a ``.gcov`` file (without line terminator).

    Raises:
        FormatError: If the count field is neither a number nor the
            zero placeholder.
    """
    if line.startswith(_UNINSTRUMENTED_PREFIX):
        return AnnotatedLine(instrumented=False, count=None, text=line[2:])

    field = line[:_COUNT_FIELD_WIDTH].split()
    if not field:
        raise FormatError(f"missing execution count in line {line!r}")
    token = field[0]
    if _ZERO_COUNT_RE.match(token):
        count = 0
    else:
        try:
            count = int(token)
        except ValueError as exc:
            raise FormatError(f"invalid execution count {token!r}") from exc
    return AnnotatedLine(instrumented=True, count=count, text=line[_COUNT_FIELD_WIDTH:])


def read_gcov_file(gcov_path: str | Path) -> list[AnnotatedLine]:
    """Decode a ``.gcov`` file into one :class:`AnnotatedLine` per source line.

    Index ``i`` of the result describes source line ``i + 1``. An empty file
    yields an empty list; deciding what to do with it is up to the caller.

    Raises:
        DataIOError: If the file cannot be read.
        FormatError: If a line carries a malformed count field.
    """
    try:
        with open(gcov_path, encoding="utf-8", errors="replace") as handle:
            raw_lines = [raw.rstrip("\n") for raw in handle]
    except OSError as exc:
        raise DataIOError(f"cannot read {gcov_path}: {exc.strerror}") from exc

    result = []
    for number, raw_line in enumerate(raw_lines, start=1):
        try:
            result.append(parse_gcov_line(raw_line))
        except FormatError as exc:
            raise FormatError(f"{exc} (line {number})", str(gcov_path)) from exc
    logger.debug("Parsed %d line(s) from %s", len(result), gcov_path)
    return result
