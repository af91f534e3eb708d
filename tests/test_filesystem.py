"""Tests for filesystem module."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import RUNNING_AS_ROOT
from dualfs.errors import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    InvalidDataError,
    InvalidPathError,
    NotDirectoryError,
    NotFileError,
    NotFoundError,
    PermissionDeniedError,
    TypeMismatchError,
)
from dualfs.filesystem import DirEntry, FileSystem, RealFileSystem
from dualfs.nodes import NodeKind


class TestDirEntry:
    """Tests for the DirEntry value type."""

    def test_kind_predicates(self) -> None:
        entry = DirEntry(name="a", path="/x/a", kind=NodeKind.DIRECTORY)
        assert entry.is_dir() is True
        assert entry.is_file() is False
        assert entry.is_symlink() is False

    def test_frozen(self) -> None:
        from dataclasses import FrozenInstanceError

        entry = DirEntry(name="a", path="/a", kind=NodeKind.FILE)
        with pytest.raises(FrozenInstanceError):
            entry.name = "b"  # type: ignore[misc]


class TestRealFileSystem:
    """Tests for RealFileSystem.

    Note: These tests perform actual I/O so use temp files.
    """

    def test_implements_protocol(self, real_fs: RealFileSystem) -> None:
        """Verifies RealFileSystem satisfies the FileSystem protocol.

        Tests that RealFileSystem implements the FileSystem protocol
        interface for substitutability with MemoryFileSystem.

        Business context:
        Dependency injection requires consistent interfaces. Real and
        in-memory implementations must be interchangeable.

        Arrangement:
        Create RealFileSystem instance.

        Action:
        Runtime isinstance check against the protocol.

        Assertion Strategy:
        Validates the check passes.

        Testing Principle:
        Validates protocol compliance.
        """
        assert isinstance(real_fs, FileSystem)

    def test_current_dir_round_trip(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        """Verifies set_current_dir changes the process working directory."""
        (tmp_path / "sub").mkdir()
        real_fs.set_current_dir(tmp_path / "sub")
        assert real_fs.current_dir() == os.path.realpath(tmp_path / "sub")

    def test_set_current_dir_errors(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        (tmp_path / "f").write_bytes(b"")
        with pytest.raises(NotFoundError):
            real_fs.set_current_dir(tmp_path / "missing")
        with pytest.raises(NotDirectoryError):
            real_fs.set_current_dir(tmp_path / "f")

    def test_queries(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        (tmp_path / "f").write_bytes(b"abc")
        os.symlink(tmp_path / "f", tmp_path / "link")

        assert real_fs.exists(tmp_path / "f") is True
        assert real_fs.is_dir(tmp_path) is True
        assert real_fs.is_file(tmp_path / "link") is True
        assert real_fs.is_symlink(tmp_path / "link") is True
        assert real_fs.size(tmp_path / "f") == 3
        assert real_fs.size(tmp_path) == 0
        assert real_fs.size(tmp_path / "missing") == 0


class TestRealFileSystemCreation:
    """Tests for RealFileSystem create operations."""

    def test_create_dir_errors(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        """Verifies native mkdir failures surface as dualfs errors.

        Business context:
        Callers catch one taxonomy regardless of backend. Native
        FileExistsError and FileNotFoundError must arrive translated.

        Arrangement:
        Existing directory and a missing parent.

        Action:
        create_dir on each.

        Assertion Strategy:
        AlreadyExistsError and NotFoundError respectively, each still
        catchable as its builtin counterpart.
        """
        real_fs.create_dir(tmp_path / "d")

        with pytest.raises(AlreadyExistsError) as exc_info:
            real_fs.create_dir(tmp_path / "d")
        assert isinstance(exc_info.value, FileExistsError)
        assert exc_info.value.filename == str(tmp_path / "d")

        with pytest.raises(NotFoundError):
            real_fs.create_dir(tmp_path / "no" / "d")

    def test_create_dir_all_errors(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        (tmp_path / "file").write_bytes(b"")

        with pytest.raises(AlreadyExistsError):
            real_fs.create_dir_all(tmp_path / "file")
        with pytest.raises(NotDirectoryError):
            real_fs.create_dir_all(tmp_path / "file" / "a" / "b")

    def test_create_file_is_exclusive(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        path = tmp_path / "once.bin"
        real_fs.create_file(path, b"first")

        with pytest.raises(AlreadyExistsError):
            real_fs.create_file(path, b"second")
        assert path.read_bytes() == b"first"

    def test_write_file_on_directory(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        with pytest.raises(NotFileError):
            real_fs.write_file(tmp_path, b"x")

    def test_overwrite_file(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        """Verifies overwrite_file truncates and never creates."""
        path = tmp_path / "f"
        path.write_bytes(b"a long original body")

        real_fs.overwrite_file(path, b"short")
        assert path.read_bytes() == b"short"

        with pytest.raises(NotFoundError):
            real_fs.overwrite_file(tmp_path / "missing", b"x")
        assert not (tmp_path / "missing").exists()


class TestRealFileSystemReading:
    """Tests for RealFileSystem read operations."""

    def test_read_file_to_string_invalid_utf8(
        self, real_fs: RealFileSystem, tmp_path: Path
    ) -> None:
        (tmp_path / "blob").write_bytes(b"\xc3\x28")
        with pytest.raises(InvalidDataError):
            real_fs.read_file_to_string(tmp_path / "blob")

    def test_read_dir_reports_own_kinds(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        """Verifies read_dir reports symlinks as symlinks.

        Arrangement:
        A directory, a file and a link to the directory.

        Action:
        Collect read_dir() entries sorted by name (OS order is arbitrary).

        Assertion Strategy:
        Kinds are DIRECTORY, FILE, SYMLINK; paths join the listed path.
        """
        (tmp_path / "a_dir").mkdir()
        (tmp_path / "b_file").write_bytes(b"")
        os.symlink(tmp_path / "a_dir", tmp_path / "c_link")

        entries = sorted(real_fs.read_dir(tmp_path), key=lambda e: e.name)

        assert [e.kind for e in entries] == [
            NodeKind.DIRECTORY,
            NodeKind.FILE,
            NodeKind.SYMLINK,
        ]
        assert entries[1].path == os.path.join(str(tmp_path), "b_file")

    def test_read_dir_errors_raised_eagerly(
        self, real_fs: RealFileSystem, tmp_path: Path
    ) -> None:
        """Verifies read_dir fails at call time, not on first iteration."""
        (tmp_path / "f").write_bytes(b"")
        with pytest.raises(NotFoundError):
            real_fs.read_dir(tmp_path / "missing")
        with pytest.raises(NotDirectoryError):
            real_fs.read_dir(tmp_path / "f")

    def test_readlink(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        real_fs.symlink("relative/target", tmp_path / "link")

        assert real_fs.readlink(tmp_path / "link") == "relative/target"
        (tmp_path / "plain").write_bytes(b"")
        with pytest.raises(InvalidPathError):
            real_fs.readlink(tmp_path / "plain")


class TestRealFileSystemRemoval:
    """Tests for RealFileSystem removal operations."""

    def test_remove_file_on_directory(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        (tmp_path / "d").mkdir()
        with pytest.raises(NotFileError):
            real_fs.remove_file(tmp_path / "d")
        assert (tmp_path / "d").is_dir()

    def test_remove_file_on_link_to_directory(
        self, real_fs: RealFileSystem, tmp_path: Path
    ) -> None:
        (tmp_path / "d").mkdir()
        os.symlink(tmp_path / "d", tmp_path / "link")

        real_fs.remove_file(tmp_path / "link")

        assert not (tmp_path / "link").is_symlink()
        assert (tmp_path / "d").is_dir()

    def test_remove_dir_not_empty(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "f").write_bytes(b"")
        with pytest.raises(DirectoryNotEmptyError):
            real_fs.remove_dir(tmp_path / "d")

    def test_remove_dir_all_removes_readonly_file(
        self, real_fs: RealFileSystem, tmp_path: Path
    ) -> None:
        """Verifies the OS backend removes readonly files inside writable directories.

        Business context:
        On disk only directory write bits gate removal. MemoryFileSystem is
        stricter and refuses; the protocol documents the difference.
        """
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "locked").write_bytes(b"")
        real_fs.set_readonly(tmp_path / "d" / "locked", True)

        real_fs.remove_dir_all(tmp_path / "d")

        assert not (tmp_path / "d").exists()

    def test_remove_dir_all_rejects_symlink(
        self, real_fs: RealFileSystem, tmp_path: Path
    ) -> None:
        """Verifies a link to a directory is refused, leaving the target."""
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "keep").write_bytes(b"")
        os.symlink(tmp_path / "d", tmp_path / "link")

        with pytest.raises(NotDirectoryError):
            real_fs.remove_dir_all(tmp_path / "link")
        assert (tmp_path / "d" / "keep").exists()


class TestRealFileSystemRenameCopy:
    """Tests for rename and copy on disk."""

    def test_rename_kind_mismatch(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        """Verifies directory/file conflicts become TypeMismatchError.

        Business context:
        The kernel reports these as ENOTDIR or EISDIR depending on
        direction; callers see a single error type on both backends.
        """
        (tmp_path / "d").mkdir()
        (tmp_path / "f").write_bytes(b"")

        with pytest.raises(TypeMismatchError):
            real_fs.rename(tmp_path / "d", tmp_path / "f")
        with pytest.raises(TypeMismatchError):
            real_fs.rename(tmp_path / "f", tmp_path / "d")

    def test_rename_replaces_file(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        (tmp_path / "a").write_bytes(b"A")
        (tmp_path / "b").write_bytes(b"B")

        real_fs.rename(tmp_path / "a", tmp_path / "b")

        assert (tmp_path / "b").read_bytes() == b"A"
        assert not (tmp_path / "a").exists()

    def test_copy_new_destination_takes_mode(
        self, real_fs: RealFileSystem, tmp_path: Path
    ) -> None:
        src = tmp_path / "src"
        src.write_bytes(b"payload")
        os.chmod(src, 0o640)

        real_fs.copy(src, tmp_path / "dst")

        assert (tmp_path / "dst").read_bytes() == b"payload"
        assert real_fs.mode(tmp_path / "dst") == 0o640

    def test_copy_errors(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        (tmp_path / "d").mkdir()
        (tmp_path / "f").write_bytes(b"")

        with pytest.raises(TypeMismatchError):
            real_fs.copy(tmp_path / "f", tmp_path / "d")
        with pytest.raises(NotFileError):
            real_fs.copy(tmp_path / "d", tmp_path / "copy")
        with pytest.raises(NotFoundError):
            real_fs.copy(tmp_path / "missing", tmp_path / "copy")


class TestRealFileSystemPermissions:
    """Tests for mode and readonly handling on disk."""

    def test_set_mode_masks_type_bits(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        path = tmp_path / "f"
        path.write_bytes(b"")

        real_fs.set_mode(path, 0o100600)

        assert real_fs.mode(path) == 0o600

    def test_set_readonly_round_trip(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        path = tmp_path / "f"
        path.write_bytes(b"")
        os.chmod(path, 0o644)

        real_fs.set_readonly(path, True)
        assert real_fs.readonly(path) is True
        assert real_fs.mode(path) == 0o444

        real_fs.set_readonly(path, False)
        assert real_fs.mode(path) == 0o666

    @pytest.mark.skipif(RUNNING_AS_ROOT, reason="root ignores permission bits")
    def test_readonly_directory_blocks_creation(
        self, real_fs: RealFileSystem, tmp_path: Path
    ) -> None:
        locked = tmp_path / "locked"
        locked.mkdir()
        real_fs.set_readonly(locked, True)
        try:
            with pytest.raises(PermissionDeniedError):
                real_fs.create_file(locked / "new", b"")
        finally:
            real_fs.set_readonly(locked, False)

    def test_mode_missing_raises(self, real_fs: RealFileSystem, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            real_fs.mode(tmp_path / "missing")


class TestRealFileSystemTempDir:
    """Tests for RealFileSystem.temp_dir()."""

    def test_prefix_and_cleanup(self, real_fs: RealFileSystem) -> None:
        """Verifies the temp dir carries the prefix and is removed on release.

        Arrangement:
        temp_dir("dualfs-test-") with nested content.

        Action:
        Leave the with-block.

        Assertion Strategy:
        Basename starts with the prefix; the tree is gone afterwards.
        """
        with real_fs.temp_dir("dualfs-test-") as tmp:
            assert os.path.basename(tmp.path).startswith("dualfs-test-")
            real_fs.create_dir_all(os.path.join(tmp.path, "a", "b"))
            real_fs.write_file(os.path.join(tmp.path, "a", "b", "f"), b"x")

        assert not os.path.exists(tmp.path)
