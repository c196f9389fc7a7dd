"""Path canonicalization helpers.

The metadata and annotated files reference sources with slash-separated
paths that may be relative, contain ``..`` segments, or point through chains
of symbolic links. These helpers turn them into the canonical absolute form
used as record keys. They operate on plain strings so that paths of files
that no longer exist still normalize.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

from covinfo.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

_SEP = "/"
_PARENT = ".."
_CURRENT = "."

# Same bound the kernel applies (MAXSYMLINKS).
MAX_SYMLINK_HOPS = 40


def normalize_path(path: str) -> str:
    """Return *path* with empty, ``.`` and resolvable ``..`` segments removed.

    A leading ``..`` is dropped for absolute paths and kept for relative ones.

    Examples:
        >>> normalize_path("/a/b/../c")
        '/a/c'
        >>> normalize_path("a/../../b")
        '../b'
        >>> normalize_path("/../a")
        '/a'
    """
    absolute = path.startswith(_SEP)
    components: list[str] = []

    for part in path.split(_SEP):
        if not part or part == _CURRENT:
            continue
        if part == _PARENT:
            if components and components[-1] != _PARENT:
                components.pop()
            elif not absolute:
                components.append(part)
            continue
        components.append(part)

    joined = _SEP.join(components)
    if absolute:
        return _SEP + joined
    return joined or _CURRENT


def get_absolute_path(path: str, base: str) -> str:
    """Return *path* unchanged if absolute, otherwise prefixed with *base*."""
    if path.startswith(_SEP):
        return path
    return f"{base}{_SEP}{path}"


def get_dir(path: str) -> str:
    """Return the directory component of *path* (no trailing slash)."""
    return path.rsplit(_SEP, 1)[0] if _SEP in path else ""


def split_filename(path: str) -> tuple[str, str, str]:
    """Split *path* into ``(directory, stem, extension)``.

    The extension is whatever follows the last dot of the final component;
    a name without a dot has an empty extension.
    """
    directory = get_dir(path)
    name = path.rsplit(_SEP, 1)[-1]
    stem, dot, extension = name.rpartition(".")
    if not dot:
        return directory, name, ""
    return directory, stem, extension


def resolve_symlink_chain(path: str) -> str:
    """Follow symbolic links from *path* until a non-link is reached.

    Relative link targets are taken relative to the directory of the link.

    Raises:
        ConfigurationError: If the chain is longer than ``MAX_SYMLINK_HOPS``,
            which in practice means it is cyclic.
    """
    current = path
    for _ in range(MAX_SYMLINK_HOPS):
        if not os.path.islink(current):
            return current
        target = os.readlink(current)
        logger.debug("Following link %s -> %s", current, target)
        base = os.path.dirname(current) or _CURRENT
        current = normalize_path(get_absolute_path(target, base))
    if not os.path.islink(current):
        return current
    raise ConfigurationError(
        f"Too many levels of symbolic links resolving {path} "
        f"(more than {MAX_SYMLINK_HOPS}, probably a cycle)"
    )


@contextmanager
def working_directory(path: str | os.PathLike[str]) -> Iterator[str]:
    """Change into *path* for the duration of the block.

    The original working directory is restored on every exit path, including
    errors and ``KeyboardInterrupt``.

    Yields:
        The original working directory.
    """
    original = os.getcwd()
    os.chdir(path)
    logger.debug("Entered %s (was %s)", path, original)
    try:
        yield original
    finally:
        os.chdir(original)
        logger.debug("Restored working directory %s", original)
