"""
Pytest configuration and shared fixtures for dualfs tests.

This module contains:
- memory_fs / real_fs: fresh backend instances
- backend: parametrized (filesystem, base directory) pairs so one test body
  runs against both backends
- Config override cleanup applied to every test
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from dualfs.config import Config
from dualfs.filesystem import FileSystem, RealFileSystem
from dualfs.memory import MemoryFileSystem

RUNNING_AS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0
"""Root bypasses permission bits on a real OS, so readonly checks are moot."""


@pytest.fixture(autouse=True)
def reset_config() -> Iterator[None]:
    """
    Clear Config test overrides after every test.

    Business context: Config overrides are class-level state. Without
    cleanup, a test that moves the temp root would leak into every test
    that runs after it.

    Yields:
        None. Cleanup runs after the test body.
    """
    yield
    Config.reset_test_overrides()


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    """
    Create a MemoryFileSystem for testing.

    Provides a fresh in-memory filesystem instance for each test,
    ensuring test isolation without actual disk I/O.

    Returns:
        MemoryFileSystem: An empty filesystem whose only node is "/".

    Example:
        >>> def test_storage(memory_fs):
        ...     memory_fs.write_file('/data.bin', b'x')
    """
    return MemoryFileSystem()


@pytest.fixture
def real_fs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> RealFileSystem:
    """
    Create a RealFileSystem working inside tmp_path.

    The process working directory is moved into tmp_path and restored by
    monkeypatch afterwards, so tests may call set_current_dir freely.
    """
    monkeypatch.chdir(tmp_path)
    return RealFileSystem()


@pytest.fixture(params=["memory", "real"])
def backend(request: pytest.FixtureRequest, tmp_path: Path) -> tuple[FileSystem, str]:
    """
    Provide each backend together with an empty base directory.

    Returns:
        (filesystem, base) where base is an existing, empty, writable
        directory; tests build every path beneath it.
    """
    if request.param == "memory":
        fs: FileSystem = MemoryFileSystem()
        fs.create_dir_all("/work")
        return fs, "/work"
    monkeypatch = request.getfixturevalue("monkeypatch")
    monkeypatch.chdir(tmp_path)
    return RealFileSystem(), str(tmp_path)


@pytest.fixture
def populated_fs(memory_fs: MemoryFileSystem) -> MemoryFileSystem:
    """
    MemoryFileSystem with a small project tree.

    Layout:
        /project/README.md         b"# readme"
        /project/src/main.py       b"print('hi')"
        /project/src/lib/util.py   b"X = 1"
        /project/docs/             (empty)
        /project/link-to-src  ->   /project/src
    """
    memory_fs.create_dir_all("/project/src/lib")
    memory_fs.create_dir("/project/docs")
    memory_fs.create_file("/project/README.md", b"# readme")
    memory_fs.create_file("/project/src/main.py", b"print('hi')")
    memory_fs.create_file("/project/src/lib/util.py", b"X = 1")
    memory_fs.symlink("/project/src", "/project/link-to-src")
    return memory_fs
