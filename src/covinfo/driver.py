"""Extraction driver: from data directories to a tracefile.

For every raw data file found below the input directories the driver reads
the matching ``.bb`` metadata, lets the annotator produce ``.gcov`` listings,
matches each listing to a source path, and appends one tracefile record per
source file. Data files are processed strictly one after the other.

Errors derived from :class:`~covinfo.errors.CovinfoError` abort the run.
A :class:`~covinfo.errors.ReconciliationWarning` only skips the listing (or
data file) it concerns.
"""

from __future__ import annotations

import enum
import logging
import os
import sys
from typing import TYPE_CHECKING, TextIO

from covinfo.adapters.gcov import Annotator, GcovAnnotator
from covinfo.errors import (
    CovinfoError,
    DataIOError,
    FormatError,
    ReconciliationWarning,
    UsageError,
)
from covinfo.models.coverage import MetadataMapping, RawDataFile, RunSummary
from covinfo.parsing.bb_file import read_bb_file
from covinfo.parsing.gcov_file import read_gcov_file
from covinfo.reconcile import match_filename
from covinfo.report.tracefile import TracefileWriter, build_record, create_empty
from covinfo.reporters.terminal import CLIReporter
from covinfo.utils.paths import (
    get_absolute_path,
    get_dir,
    normalize_path,
    resolve_symlink_chain,
    working_directory,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from covinfo.config import CovinfoConfig

logger = logging.getLogger(__name__)


class DriverState(enum.Enum):
    """Where the driver is in its processing cycle.

    Per data file the driver passes through RESOLVING_METADATA and INVOKING
    once; AGGREGATING, WRITING and CLEANING_UP then repeat for every listing
    the annotator produced, so each listing is removed as soon as it has been
    handled.
    """

    IDLE = "idle"
    SCANNING = "scanning"
    RESOLVING_METADATA = "resolving-metadata"
    INVOKING = "invoking"
    AGGREGATING = "aggregating"
    WRITING = "writing"
    CLEANING_UP = "cleaning-up"
    DONE = "done"
    ABORTED = "aborted"


def find_data_files(directory: str, extension: str) -> list[str]:
    """Return all regular files below *directory* whose name ends in *extension*.

    Symbolic links to directories are followed; each real directory is
    visited once, so link cycles terminate.
    """
    found: list[str] = []
    seen: set[tuple[int, int]] = set()
    for root, dirs, files in os.walk(directory, followlinks=True):
        try:
            info = os.stat(root)
        except OSError:
            dirs[:] = []
            continue
        key = (info.st_dev, info.st_ino)
        if key in seen:
            dirs[:] = []
            continue
        seen.add(key)
        for name in files:
            path = os.path.join(root, name)
            if name.endswith(extension) and os.path.isfile(path):
                found.append(path)
    return sorted(found)


class CoverageInfoGenerator:
    """Turns raw coverage data below a set of directories into tracefile data."""

    def __init__(
        self,
        config: CovinfoConfig,
        *,
        annotator: Annotator | None = None,
        reporter: CLIReporter | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            config: Resolved configuration.
            annotator: Produces the annotated listings. Defaults to running gcov.
            reporter: Receives progress messages and warnings.
            stdout: Stream used when the output filename is ``-``.
        """
        self._files = config.files
        self._output = config.output
        self._annotator = annotator or GcovAnnotator(config.gcov, config.files)
        self._reporter = reporter or CLIReporter(quiet=config.output.quiet)
        self._stdout = stdout
        if self._output.to_stdout:
            # Progress text would interleave with the tracefile.
            self._reporter.quiet = True

        self.state = DriverState.IDLE
        self.summary = RunSummary()
        self._cwd = os.getcwd()
        self._shared_output: str | None = None

    # ── State ────────────────────────────────────────────────────

    def _enter(self, state: DriverState) -> None:
        logger.debug("Driver state: %s -> %s", self.state.value, state.value)
        self.state = state

    def _warn(self, message: str) -> None:
        self.summary.warnings.append(message)
        logger.info("Skipped: %s", message)
        self._reporter.print_warning(message)

    # ── Entry point ──────────────────────────────────────────────

    def run(self, directories: Iterable[str]) -> RunSummary:
        """Process every data file below *directories*.

        Raises:
            CovinfoError: On the first fatal error. The working directory is
                restored before the exception leaves this method.
        """
        self._cwd = os.getcwd()
        self.summary = RunSummary()
        try:
            self._prepare_output()
            for directory in directories:
                self._process_directory(directory)
        except (CovinfoError, KeyboardInterrupt):
            self._enter(DriverState.ABORTED)
            raise
        self._enter(DriverState.DONE)
        self._reporter.print_info("Finished .info-file creation")
        return self.summary

    def _prepare_output(self) -> None:
        filename = self._output.filename
        if not filename or self._output.to_stdout:
            return
        # Absolute, because processing changes directories.
        self._shared_output = normalize_path(get_absolute_path(filename, self._cwd))
        create_empty(self._shared_output)

    # ── Scanning ─────────────────────────────────────────────────

    def _process_directory(self, directory: str) -> None:
        self._enter(DriverState.SCANNING)
        extension = self._files.data_extension
        self._reporter.print_info(f"Scanning {directory} for {extension} files ...")

        data_files = find_data_files(directory, extension)
        if not data_files:
            raise UsageError(f"No {extension} files found in {directory}!")
        self._reporter.print_info(f"Found {len(data_files)} data files in {directory}")

        for path in data_files:
            self.process_data_file(path)

    # ── Per data file ────────────────────────────────────────────

    def _raw_data_file(self, path: str) -> RawDataFile:
        absolute = normalize_path(get_absolute_path(path, self._cwd))
        directory = get_dir(absolute) or "/"
        name = absolute.rsplit("/", 1)[-1]
        basename = name.removesuffix(self._files.data_extension) or name
        return RawDataFile(path=absolute, directory=directory, basename=basename)

    def process_data_file(self, path: str) -> None:
        """Append the tracefile section for a single data file.

        Raises:
            CovinfoError: If metadata, gcov or output handling fails.
        """
        self._reporter.print_info(f"Processing {path}")
        raw_file = self._raw_data_file(path)

        # gcov writes its listings next to the data file.
        if not os.access(raw_file.directory, os.W_OK):
            raise DataIOError(f"cannot write to directory {raw_file.directory}!")

        self._enter(DriverState.RESOLVING_METADATA)
        bb_path = resolve_symlink_chain(
            f"{raw_file.directory}/{raw_file.basename}{self._files.metadata_extension}"
        )
        mapping = read_bb_file(bb_path)
        # Object files live next to the real metadata file, which may be
        # elsewhere when the .bb file was reached through a link.
        object_dir = get_dir(bb_path) or "/"

        with working_directory(raw_file.directory):
            self._enter(DriverState.INVOKING)
            listings = self._annotator.annotate(raw_file, object_dir)
            if not listings:
                self._warn(f"{self._annotator.name} did not create any files for {raw_file.path}!")

            with self._open_writer(raw_file) as writer:
                writer.write_test_name(self._output.test_name)
                for listing in listings:
                    self._process_listing(listing, mapping, writer)

        self.summary.data_files += 1
        self._enter(DriverState.IDLE)

    def _open_writer(self, raw_file: RawDataFile) -> TracefileWriter:
        if self._output.to_stdout:
            return TracefileWriter(self._stdout or sys.stdout)
        if self._shared_output:
            return TracefileWriter(self._shared_output, append=True)
        return TracefileWriter(f"{raw_file.path}.info")

    def _process_listing(
        self,
        listing: Path,
        mapping: MetadataMapping,
        writer: TracefileWriter,
    ) -> None:
        self._enter(DriverState.AGGREGATING)
        try:
            source = match_filename(
                listing.name, mapping.keys(), suffix=self._files.annotated_suffix
            )
            if source is None:
                raise ReconciliationWarning(
                    f"cannot find an entry for {listing.name} in "
                    f"{self._files.metadata_extension} file, skipping file!"
                )

            try:
                annotated = read_gcov_file(listing)
            except FormatError as exc:
                raise ReconciliationWarning(f"{exc}, skipping file!") from exc
            if not annotated:
                raise ReconciliationWarning(f"skipping empty file {listing.name}")

            record = build_record(source, mapping[source], annotated)
            self._enter(DriverState.WRITING)
            writer.write_record(record)
            self.summary.records += 1
        except ReconciliationWarning as warning:
            self._warn(str(warning))
        finally:
            self._enter(DriverState.CLEANING_UP)
            listing.unlink(missing_ok=True)
