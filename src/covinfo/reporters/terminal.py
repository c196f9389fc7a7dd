"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


class CLIReporter:
    """Progress, warning and error messages for an extraction run.

    Progress goes to standard output and is dropped in quiet mode (which is
    forced when tracefile data itself is written to standard output).
    Warnings and errors always go to standard error.
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        out: Console | None = None,
        err: Console | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            quiet: Suppress progress messages.
            out: Console for progress output.
            err: Console for warnings and errors.
        """
        self.quiet = quiet
        self.console = out or console
        self.err_console = err or err_console

    def print_info(self, message: str) -> None:
        """Print a progress message unless quiet."""
        if not self.quiet:
            self.console.print(escape(message), highlight=False)

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.err_console.print(f"[yellow]WARNING:[/yellow] {escape(message)}", highlight=False)

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.err_console.print(f"[red]ERROR:[/red] {escape(message)}", highlight=False)

