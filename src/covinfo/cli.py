"""covinfo CLI: create LCOV tracefiles from gcc coverage data."""

from __future__ import annotations

import logging
import os
import sys
from typing import NoReturn

import click
from rich.logging import RichHandler

from covinfo import __version__
from covinfo.config import CONFIG_FILENAME, load_config, validate_config
from covinfo.driver import CoverageInfoGenerator
from covinfo.errors import ConfigurationError, CovinfoError, UsageError
from covinfo.reporters.terminal import CLIReporter, err_console

logger = logging.getLogger(__name__)

_EXIT_FAILURE = 1


def _configure_logging(*, debug: bool) -> None:
    """Send library log records to standard error through rich."""
    handler = RichHandler(console=err_console, show_time=False, show_path=debug)
    root = logging.getLogger("covinfo")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.WARNING)


def _fail(reporter: CLIReporter, exc: CovinfoError) -> NoReturn:
    logger.debug("Fatal error", exc_info=True)
    reporter.print_error(str(exc))
    sys.exit(_EXIT_FAILURE)


def _check_directories(directories: tuple[str, ...]) -> None:
    if not directories:
        raise UsageError("No directory specified")
    for directory in directories:
        if not os.path.isdir(directory) or not os.access(directory, os.R_OK | os.X_OK):
            raise UsageError(f"cannot read {directory}!")


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog="See https://github.com/linux-test-project/lcov for the tracefile format.",
)
@click.argument("directories", nargs=-1, type=click.Path(file_okay=False))
@click.option("-t", "--test-name", default=None, help="Use test case name NAME for resulting data.")
@click.option(
    "-o",
    "--output-filename",
    default=None,
    metavar="OUTFILE",
    help="Write data only to OUTFILE ('-' writes to standard output).",
)
@click.option("-q", "--quiet", is_flag=True, help="Do not print progress messages.")
@click.option(
    "-c",
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help=f"Configuration file (default: ./{CONFIG_FILENAME}).",
)
@click.option("--debug", is_flag=True, help="Log internal processing steps to standard error.")
@click.version_option(__version__, "-v", "--version", prog_name="covinfo")
def cli(
    directories: tuple[str, ...],
    test_name: str | None,
    output_filename: str | None,
    config_path: str | None,
    *,
    quiet: bool,
    debug: bool,
) -> None:
    """Traverse DIRECTORY and create a .info file for each .da file found.

    More than one directory may be given; they are processed sequentially.
    """
    _configure_logging(debug=debug)
    reporter = CLIReporter()

    # Argument problems: reported together with the usage line.
    try:
        config = load_config(config_path)
        errors = validate_config(config)
        if errors:
            for error in errors:
                reporter.print_error(error)
            raise ConfigurationError(f"{len(errors)} configuration error(s)")

        if test_name is not None:
            config.output.test_name = test_name
        if output_filename is not None:
            config.output.filename = output_filename
        if quiet:
            config.output.quiet = True
        reporter.quiet = config.output.quiet

        _check_directories(directories)
    except UsageError as exc:
        reporter.print_error(str(exc))
        click.echo(cli.get_usage(click.get_current_context()), err=True)
        sys.exit(_EXIT_FAILURE)
    except CovinfoError as exc:
        _fail(reporter, exc)

    try:
        generator = CoverageInfoGenerator(config, reporter=reporter, stdout=sys.stdout)
        summary = generator.run(directories)
    except CovinfoError as exc:
        _fail(reporter, exc)
    except KeyboardInterrupt:
        reporter.print_info("Aborted.")
        sys.exit(_EXIT_FAILURE)

    logger.debug(
        "Processed %d data file(s), wrote %d record(s), skipped %d item(s)",
        summary.data_files,
        summary.records,
        len(summary.warnings),
    )
