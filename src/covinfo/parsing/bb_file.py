"""Reader for gcc basic-block metadata (``.bb``) files.

The file is a stream of little-endian signed 32-bit words. Two reserved
values introduce string records::

    0x80000001 <name bytes, NUL padded to 4> 0x80000001   source file name
    0x80000002 <name bytes, NUL padded to 4> 0x80000002   function name

A function name is followed, at some later point, by a positive word holding
the function's first line. All other words (block counts, line numbers of
basic blocks) are irrelevant here and skipped.
"""

from __future__ import annotations

import enum
import logging
import os
import struct
from typing import TYPE_CHECKING, BinaryIO

from covinfo.errors import DataIOError, FormatError
from covinfo.models.coverage import FunctionEntry, MetadataMapping
from covinfo.utils.paths import get_absolute_path, get_dir, normalize_path

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

_WORD = struct.Struct("<i")
_WORD_SIZE = _WORD.size

FILENAME_MARKER = _WORD.unpack(struct.pack("<I", 0x80000001))[0]
FUNCTION_MARKER = _WORD.unpack(struct.pack("<I", 0x80000002))[0]


class _ReaderState(enum.Enum):
    IDLE = enum.auto()
    AWAITING_LINE = enum.auto()


# ── Low-level decoding ───────────────────────────────────────────


def _read_word(stream: BinaryIO) -> int | None:
    """Return the next word, or None at end of stream (or a partial word)."""
    data = stream.read(_WORD_SIZE)
    if len(data) != _WORD_SIZE:
        return None
    return int(_WORD.unpack(data)[0])


def _read_string(stream: BinaryIO, delimiter: int) -> str | None:
    """Read 4-byte chunks until *delimiter* and return them as a string.

    Returns None if the stream ends before the delimiter or the string is
    empty.
    """
    chunks = bytearray()
    while True:
        data = stream.read(_WORD_SIZE)
        if len(data) != _WORD_SIZE:
            return None
        if _WORD.unpack(data)[0] == delimiter:
            break
        chunks += data

    raw = bytes(chunks).rstrip(b"\0")
    if not raw:
        return None
    return os.fsdecode(raw)


# ── Reader ───────────────────────────────────────────────────────


def read_bb_file(bb_path: str | Path) -> MetadataMapping:
    """Decode a ``.bb`` file into a mapping of source path to functions.

    Relative source names are made absolute against the directory holding
    the ``.bb`` file. Every referenced source file becomes a key, including
    ones that only contribute inline code and therefore have no functions.

    Raises:
        DataIOError: If the file cannot be opened.
        FormatError: If a string record is truncated or empty, or the file
            names no source file at all.
    """
    bb_name = os.fspath(bb_path)
    base_dir = get_dir(normalize_path(get_absolute_path(bb_name, os.getcwd())))

    try:
        with open(bb_name, "rb") as stream:
            result = _decode(stream, bb_name, base_dir)
    except OSError as exc:
        raise DataIOError(f"cannot read {bb_name}: {exc.strerror}") from exc

    if not result:
        raise FormatError("no data found", bb_name)
    logger.debug("Read %d source file(s) from %s", len(result), bb_name)
    return result


def _decode(stream: BinaryIO, bb_name: str, base_dir: str) -> MetadataMapping:
    result: MetadataMapping = {}
    filename: str | None = None
    function_name = ""
    state = _ReaderState.IDLE

    while (value := _read_word(stream)) is not None:
        if value == FILENAME_MARKER:
            name = _read_string(stream, FILENAME_MARKER)
            if name is None:
                raise FormatError("incomplete filename", bb_name)
            filename = normalize_path(get_absolute_path(name, base_dir))
            # Inline-only sources have no function records but still need a key.
            result.setdefault(filename, [])

        elif value == FUNCTION_MARKER:
            name = _read_string(stream, FUNCTION_MARKER)
            if name is None:
                raise FormatError("incomplete function name", bb_name)
            if state is _ReaderState.AWAITING_LINE:
                logger.debug("Function %s has no line number, replaced by %s", function_name, name)
            function_name = name
            state = _ReaderState.AWAITING_LINE

        elif value > 0 and state is _ReaderState.AWAITING_LINE:
            if filename is None:
                logger.debug("Discarding function %s declared before any file", function_name)
            else:
                result[filename].append(FunctionEntry(function_name, value))
            function_name = ""
            state = _ReaderState.IDLE

    return result
