"""Map gcov output file names back to source paths from the metadata.

gcov names its output after the source file only (``main.c.gcov``, or
``main.gcov`` for some versions), while the ``.bb`` metadata records the
full path. Matching is therefore by file name, which is ambiguous when two
sources in different directories share a name. Such a clash is reported
instead of guessed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covinfo.errors import ReconciliationWarning
from covinfo.utils.paths import split_filename

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_ANNOTATED_SUFFIX = ".gcov"


def _join(stem: str, extension: str) -> str:
    return f"{stem}.{extension}" if extension else stem


def _strip_suffix(name: str, suffix: str) -> str:
    if suffix and name.endswith(suffix) and len(name) > len(suffix):
        return name[: -len(suffix)]
    return name


def match_filename(
    annotated_path: str,
    known_paths: Iterable[str],
    *,
    suffix: str = DEFAULT_ANNOTATED_SUFFIX,
) -> str | None:
    """Return the known absolute path that *annotated_path* was generated for.

    Args:
        annotated_path: Path or name of a gcov output file. Its directory is
            ignored.
        known_paths: Absolute source paths from the metadata mapping.
        suffix: Suffix gcov appends to its output files.

    Returns:
        The matching path, or None when nothing matches.

    Raises:
        ReconciliationWarning: If more than one known path matches equally
            well.
    """
    _, stem, extension = split_filename(annotated_path)
    name = _strip_suffix(_join(stem, extension), suffix)
    has_extension = "." in name

    exact: list[str] = []
    by_stem: list[str] = []
    for path in known_paths:
        _, known_stem, known_extension = split_filename(path)
        if _join(known_stem, known_extension) == name:
            exact.append(path)
        elif not has_extension and known_stem == name:
            by_stem.append(path)

    candidates = exact or by_stem
    if not candidates:
        logger.debug("No source path matches %s", annotated_path)
        return None
    if len(candidates) > 1:
        raise ReconciliationWarning(
            f"{annotated_path} matches several source files "
            f"({', '.join(sorted(candidates))}), skipping file"
        )
    return candidates[0]
