"""Error taxonomy shared by the coverage extraction engine.

Everything derived from :class:`CovinfoError` is fatal for the whole run.
:class:`ReconciliationWarning` is the single recoverable condition: the
driver skips the offending item and carries on.
"""

from __future__ import annotations


class CovinfoError(Exception):
    """Base class for fatal coverage extraction errors."""


class UsageError(CovinfoError):
    """Bad arguments or unusable input directories."""


class ConfigurationError(CovinfoError):
    """Invalid configuration or an unresolvable filesystem layout."""


class FormatError(CovinfoError):
    """Malformed metadata or annotated input."""

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize with a message and the offending file, when known.

        Args:
            message: Error description.
            path: File the malformed data was read from.
        """
        super().__init__(f"{message} in {path}" if path else message)
        self.path = path


class ExternalToolError(CovinfoError):
    """The external annotation tool failed or could not be run."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        """Initialize with a message and the tool's exit details.

        Args:
            message: Error description.
            returncode: Exit status of the tool, if it ran at all.
            stderr: Captured standard error of the tool.
        """
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class DataIOError(CovinfoError):
    """A file could not be opened, created or written."""


class ReconciliationWarning(UserWarning):
    """Recoverable per-item problem; the item is skipped."""
