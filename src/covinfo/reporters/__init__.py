"""Reporters for progress and diagnostic output."""

from __future__ import annotations

from covinfo.reporters.terminal import CLIReporter

__all__ = [
    "CLIReporter",
]
