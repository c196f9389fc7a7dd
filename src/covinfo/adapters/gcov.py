"""Annotation tool adapters.

An :class:`Annotator` turns one raw data file into annotated source listings.
:class:`GcovAnnotator` does so by running gcov; tests substitute an
implementation that returns prepared listings without running anything.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from covinfo.config import FilesConfig, GcovConfig
from covinfo.errors import DataIOError, ExternalToolError
from covinfo.utils.subprocess_runner import SubprocessError, run_subprocess_blocking

if TYPE_CHECKING:
    from collections.abc import Iterator

    from covinfo.models.coverage import RawDataFile

logger = logging.getLogger(__name__)


class Annotator(ABC):
    """Produces annotated listings for a raw coverage data file."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool identifier (e.g. 'gcov')."""

    @abstractmethod
    def annotate(self, raw_file: RawDataFile, object_dir: str) -> list[Path]:
        """Generate annotated listings for *raw_file*.

        Args:
            raw_file: The data file to annotate.
            object_dir: Directory holding the object and metadata files that
                belong to *raw_file*.

        Returns:
            Paths of the generated listings, which live in the data file's
            directory. May be empty.
        """


class GcovAnnotator(Annotator):
    """Runs gcov once per data file."""

    def __init__(
        self,
        gcov: GcovConfig | None = None,
        files: FilesConfig | None = None,
    ) -> None:
        self._gcov = gcov or GcovConfig()
        self._files = files or FilesConfig()

    @property
    def name(self) -> str:
        return "gcov"

    def build_command(self, raw_file: RawDataFile, object_dir: str) -> list[str]:
        """Return the gcov command line for *raw_file*."""
        return [
            self._gcov.executable,
            f"{raw_file.basename}{self._files.source_extension}",
            "-o",
            object_dir,
            *self._gcov.extra_args,
        ]

    @contextmanager
    def _colocated(self, raw_file: RawDataFile, object_dir: str) -> Iterator[None]:
        """Make the data file visible in *object_dir* while the block runs.

        gcov expects data and object files side by side. When the metadata
        file was found through a link into another directory, a temporary
        link to the data file is placed there.
        """
        if object_dir == raw_file.directory:
            yield
            return

        link = Path(object_dir) / f"{raw_file.basename}{self._files.data_extension}"
        try:
            link.symlink_to(raw_file.path)
        except OSError as exc:
            raise DataIOError(f"cannot create link {link}: {exc.strerror}") from exc
        logger.debug("Linked %s -> %s", link, raw_file.path)
        try:
            yield
        finally:
            link.unlink(missing_ok=True)

    def annotate(self, raw_file: RawDataFile, object_dir: str) -> list[Path]:
        """Run gcov in the data file's directory and collect its listings.

        Raises:
            DataIOError: If the temporary data file link cannot be created.
            ExternalToolError: If gcov cannot be started, times out or exits
                with a non-zero status.
        """
        command = self.build_command(raw_file, object_dir)
        with self._colocated(raw_file, object_dir):
            try:
                result = run_subprocess_blocking(
                    command,
                    cwd=raw_file.directory,
                    timeout=self._gcov.timeout,
                )
            except (SubprocessError, ValueError) as exc:
                raise ExternalToolError(f"gcov failed for {raw_file.path}: {exc}") from exc

        if result.timed_out:
            raise ExternalToolError(
                f"gcov timed out after {self._gcov.timeout}s for {raw_file.path}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        if not result.success:
            logger.debug("gcov stderr: %s", result.stderr.strip())
            raise ExternalToolError(
                f"gcov failed for {raw_file.path} (exit status {result.returncode})",
                returncode=result.returncode,
                stderr=result.stderr,
            )

        suffix = self._files.annotated_suffix
        listings = sorted(
            Path(raw_file.directory) / entry.name
            for entry in os.scandir(raw_file.directory)
            if entry.name.endswith(suffix) and entry.is_file()
        )
        logger.debug("gcov produced %d listing(s) for %s", len(listings), raw_file.path)
        return listings
