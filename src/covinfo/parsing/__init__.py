"""Decoders for gcc coverage metadata and gcov listings."""

from __future__ import annotations

from covinfo.parsing.bb_file import read_bb_file
from covinfo.parsing.gcov_file import parse_gcov_line, read_gcov_file

__all__ = [
    "parse_gcov_line",
    "read_bb_file",
    "read_gcov_file",
]
