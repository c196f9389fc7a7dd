"""Shared fixtures for covinfo tests."""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

FILENAME_TAG = 0x80000001
FUNCTION_TAG = 0x80000002


def _word(value: int) -> bytes:
    return struct.pack("<I", value & 0xFFFFFFFF)


def _string_record(tag: int, text: str | bytes) -> bytes:
    raw = text if isinstance(text, bytes) else text.encode()
    raw += b"\0" * (4 - len(raw) % 4)
    return _word(tag) + raw + _word(tag)


def _name(value: str | bytes | int) -> str | bytes:
    return value if isinstance(value, bytes) else str(value)


def encode_bb(items: Sequence[tuple[str, str | bytes | int]]) -> bytes:
    """Encode ``("file", name)``, ``("function", name)`` and ``("word", n)`` items.

    Names may be given as bytes to store them without encoding.
    """
    out = b""
    for kind, value in items:
        if kind == "file":
            out += _string_record(FILENAME_TAG, _name(value))
        elif kind == "function":
            out += _string_record(FUNCTION_TAG, _name(value))
        else:
            out += _word(int(value))
    return out


def gcov_line(count: int | str | None, text: str) -> str:
    """Render one line the way gcov writes it (16-column count field)."""
    if count is None:
        return f"\t\t{text}"
    return f"{count!s:>12}    {text}"


@pytest.fixture()
def write_bb() -> Callable[[Path, Sequence[tuple[str, str | int]]], Path]:
    """Return a helper that writes an encoded ``.bb`` file."""

    def _write(path: Path, items: Sequence[tuple[str, str | int]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encode_bb(items))
        return path

    return _write


@pytest.fixture()
def write_gcov() -> Callable[[Path, Sequence[tuple[int | str | None, str]]], Path]:
    """Return a helper that writes a gcov listing from ``(count, text)`` pairs."""

    def _write(path: Path, lines: Sequence[tuple[int | str | None, str]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(gcov_line(c, t) + "\n" for c, t in lines), encoding="utf-8")
        return path

    return _write
