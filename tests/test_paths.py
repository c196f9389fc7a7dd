"""Tests for path canonicalization helpers (utils/paths.py)."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from covinfo.errors import ConfigurationError
from covinfo.utils.paths import (
    MAX_SYMLINK_HOPS,
    get_absolute_path,
    get_dir,
    normalize_path,
    resolve_symlink_chain,
    split_filename,
    working_directory,
)

if TYPE_CHECKING:
    from pathlib import Path


# ── normalize_path ───────────────────────────────────────────────


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/a/b/../c", "/a/c"),
        ("a/../../b", "../b"),
        ("/../a", "/a"),
        ("/a//b/./c/", "/a/b/c"),
        ("../../a", "../../a"),
        ("a/b/../../..", ".."),
        ("./a", "a"),
        ("a/..", "."),
        ("/", "/"),
        ("/..", "/"),
    ],
)
def test_normalize_path(path: str, expected: str) -> None:
    assert normalize_path(path) == expected


@pytest.mark.parametrize(
    "path",
    ["/a/b/../c", "a/../../b", "/../a", "x/./y//z/..", "../..", "/usr/lib/../include/./stdio.h"],
)
def test_normalize_path_is_idempotent(path: str) -> None:
    once = normalize_path(path)
    assert normalize_path(once) == once


# ── get_absolute_path / get_dir / split_filename ─────────────────


def test_get_absolute_path_keeps_absolute() -> None:
    assert get_absolute_path("/src/a.c", "/build") == "/src/a.c"


def test_get_absolute_path_prefixes_relative() -> None:
    assert get_absolute_path("../src/a.c", "/build/obj") == "/build/obj/../src/a.c"


def test_get_dir() -> None:
    assert get_dir("/build/obj/a.bb") == "/build/obj"
    assert get_dir("a.bb") == ""


def test_split_filename() -> None:
    assert split_filename("/src/lib/main.c") == ("/src/lib", "main", "c")
    assert split_filename("main.c.gcov") == ("", "main.c", "gcov")
    assert split_filename("/src/Makefile") == ("/src", "Makefile", "")


# ── resolve_symlink_chain ────────────────────────────────────────


def test_resolve_symlink_chain_returns_plain_file(tmp_path: Path) -> None:
    target = tmp_path / "a.bb"
    target.write_bytes(b"")
    assert resolve_symlink_chain(str(target)) == str(target)


def test_resolve_symlink_chain_returns_missing_path_unchanged(tmp_path: Path) -> None:
    missing = str(tmp_path / "missing.bb")
    assert resolve_symlink_chain(missing) == missing


def test_resolve_symlink_chain_follows_multiple_links(tmp_path: Path) -> None:
    real_dir = tmp_path / "obj"
    real_dir.mkdir()
    target = real_dir / "a.bb"
    target.write_bytes(b"")
    first = tmp_path / "first.bb"
    second = tmp_path / "second.bb"
    second.symlink_to(target)
    first.symlink_to(second)

    assert resolve_symlink_chain(str(first)) == str(target)


def test_resolve_symlink_chain_relative_target(tmp_path: Path) -> None:
    (tmp_path / "obj").mkdir()
    (tmp_path / "obj" / "a.bb").write_bytes(b"")
    (tmp_path / "data").mkdir()
    link = tmp_path / "data" / "a.bb"
    link.symlink_to(os.path.join("..", "obj", "a.bb"))

    assert resolve_symlink_chain(str(link)) == str(tmp_path / "obj" / "a.bb")


def test_resolve_symlink_chain_cycle_raises(tmp_path: Path) -> None:
    a = tmp_path / "a.bb"
    b = tmp_path / "b.bb"
    a.symlink_to(b)
    b.symlink_to(a)

    with pytest.raises(ConfigurationError, match=str(MAX_SYMLINK_HOPS)):
        resolve_symlink_chain(str(a))


# ── working_directory ────────────────────────────────────────────


def test_working_directory_changes_and_restores(tmp_path: Path) -> None:
    original = os.getcwd()
    with working_directory(tmp_path) as previous:
        assert os.getcwd() == os.path.realpath(tmp_path)
        assert previous == original
    assert os.getcwd() == original


def test_working_directory_restores_after_error(tmp_path: Path) -> None:
    original = os.getcwd()
    with pytest.raises(RuntimeError), working_directory(tmp_path):
        raise RuntimeError("boom")
    assert os.getcwd() == original


def test_working_directory_restores_after_interrupt(tmp_path: Path) -> None:
    original = os.getcwd()
    with pytest.raises(KeyboardInterrupt), working_directory(tmp_path):
        raise KeyboardInterrupt
    assert os.getcwd() == original
