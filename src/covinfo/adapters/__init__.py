"""Adapters for external coverage annotation tools."""

from __future__ import annotations

from covinfo.adapters.gcov import Annotator, GcovAnnotator

__all__ = [
    "Annotator",
    "GcovAnnotator",
]
