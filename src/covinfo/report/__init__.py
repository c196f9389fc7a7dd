"""Tracefile aggregation and output."""

from __future__ import annotations

from covinfo.report.tracefile import TracefileWriter, build_record, format_record

__all__ = [
    "TracefileWriter",
    "build_record",
    "format_record",
]
