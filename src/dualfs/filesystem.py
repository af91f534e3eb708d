"""
FileSystem abstraction for dualfs.

PURPOSE: Injectable file system interface for testability.
AI CONTEXT: Callers are written once against FileSystem and run unmodified
against either backend.

DESIGN:
- Protocol defines the interface
- RealFileSystem forwards to os/shutil/tempfile and translates native
  errors into the dualfs taxonomy
- MemoryFileSystem (dualfs.memory) simulates the same contract in memory

USAGE:
    # Production
    fs = RealFileSystem()
    installer = Installer(filesystem=fs)

    # Tests
    fs = MemoryFileSystem()
    installer = Installer(filesystem=fs)
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Union, runtime_checkable

from .config import Config
from .errors import (
    FileSystemError,
    InvalidDataError,
    NotDirectoryError,
    NotFileError,
    TypeMismatchError,
    translate_os_error,
)
from .nodes import NodeKind

if TYPE_CHECKING:
    from .tempdir import TempDir

__all__ = ["StrPath", "DirEntry", "FileSystem", "RealFileSystem"]

logger = logging.getLogger(__name__)

StrPath = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class DirEntry:
    """
    One immediate child reported by read_dir().

    Attributes:
        name: Entry name inside the listed directory.
        path: The listed directory's path joined with `name`.
        kind: Kind of the entry itself (symlinks are not followed).
    """

    name: str
    path: str
    kind: NodeKind

    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE

    def is_symlink(self) -> bool:
        return self.kind is NodeKind.SYMLINK


@runtime_checkable
class FileSystem(Protocol):
    """
    Protocol for file system operations.

    Defines the contract shared by RealFileSystem and MemoryFileSystem.
    Paths are strings or os.PathLike objects; relative paths resolve
    against current_dir(). Every failure is a dualfs.errors.FileSystemError
    subclass, which is also the matching builtin OSError subclass.

    Business context: Build tools, installers and test harnesses depend on
    this protocol instead of os/shutil, so their test suites can swap in
    MemoryFileSystem for deterministic, side-effect-free runs.
    """

    def current_dir(self) -> str:
        """
        Return the current working directory.

        Raises:
            NotFoundError: If the working directory no longer exists.
        """
        ...

    def set_current_dir(self, path: StrPath) -> None:
        """
        Change the current working directory.

        Args:
            path: Directory to make current.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
        """
        ...

    def exists(self, path: StrPath) -> bool:
        """
        Check if path exists, following symlinks. Never raises.

        Example:
            >>> fs.exists('/data/config.json')
            True
        """
        ...

    def is_dir(self, path: StrPath) -> bool:
        """
        Check if path is a directory, following symlinks.

        Returns:
            True if path resolves to a directory. False when it is missing,
            dangling, or another kind of node. Never raises.
        """
        ...

    def is_file(self, path: StrPath) -> bool:
        """
        Check if path is a regular file, following symlinks.

        Returns:
            True if path resolves to a file. False when it is missing,
            dangling, or another kind of node. Never raises.
        """
        ...

    def is_symlink(self, path: StrPath) -> bool:
        """Check if path itself is a symlink (dangling or not). Never raises."""
        ...

    def create_dir(self, path: StrPath) -> None:
        """
        Create exactly one directory.

        Raises:
            NotFoundError: If the parent directory does not exist.
            AlreadyExistsError: If path already exists.
            PermissionDeniedError: If the parent directory is readonly.
        """
        ...

    def create_dir_all(self, path: StrPath) -> None:
        """
        Create a directory and every missing ancestor, like `mkdir -p`.

        Succeeds without changes when path is already a directory. Symlinks
        to directories are passed through; a dangling symlink is never
        turned into a directory at its target.

        Raises:
            NotDirectoryError: If an intermediate component is a file.
            NotFoundError: If an intermediate component is a dangling symlink.
            AlreadyExistsError: If path exists but is not a directory, or is
                a dangling symlink.
        """
        ...

    def create_file(self, path: StrPath, content: bytes = b"") -> None:
        """
        Create a new file with the given content.

        Raises:
            NotFoundError: If the parent directory does not exist.
            AlreadyExistsError: If path already exists.
        """
        ...

    def write_file(self, path: StrPath, content: bytes) -> None:
        """
        Write content to a new or existing file, replacing its content.

        Business context: The everyday "save" primitive. Overwrite never
        appends, so callers can rewrite configuration files idempotently.

        Raises:
            NotFoundError: If the parent directory does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is readonly. Content is left
                untouched.

        Example:
            >>> fs.write_file('/data/a.txt', b'one')
            >>> fs.write_file('/data/a.txt', b'two')
            >>> fs.read_file('/data/a.txt')
            b'two'
        """
        ...

    def overwrite_file(self, path: StrPath, content: bytes) -> None:
        """
        Replace the content of an existing file.

        Raises:
            NotFoundError: If the file does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is readonly.
        """
        ...

    def read_file(self, path: StrPath) -> bytes:
        """
        Return the content of a file, following symlinks.

        Raises:
            NotFoundError: If path (or a followed link's target) is missing.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is not readable.
        """
        ...

    def read_file_to_string(self, path: StrPath) -> str:
        """
        Return the content of a file decoded as UTF-8.

        Raises:
            InvalidDataError: If the content is not valid UTF-8.
            Plus every error read_file() raises.
        """
        ...

    def read_file_into(self, path: StrPath, buffer: bytearray) -> int:
        """
        Append the content of a file to buffer.

        Returns:
            Number of bytes appended.
        """
        ...

    def remove_file(self, path: StrPath) -> None:
        """
        Remove a file or a symlink. Symlinks are removed, not followed.

        Raises:
            NotFoundError: If path does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file or its directory is readonly.
        """
        ...

    def remove_dir(self, path: StrPath) -> None:
        """
        Remove an empty directory.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
            DirectoryNotEmptyError: If the directory has children.
        """
        ...

    def remove_dir_all(self, path: StrPath) -> None:
        """
        Remove a directory and everything beneath it.

        Symlinks inside the tree are removed as links, never followed.

        BACKEND DIFFERENCE:
        MemoryFileSystem refuses when the parent, the directory, or any
        file or directory beneath it is readonly, and then removes nothing.
        RealFileSystem defers to the OS, where only directory write bits
        matter: readonly files inside writable directories are removed, and
        a refusal partway through may leave part of the tree removed.

        Raises:
            NotFoundError: If path does not exist (absence is an error).
            NotDirectoryError: If path is not a directory.
            PermissionDeniedError: If anything involved is readonly.
        """
        ...

    def rename(self, src: StrPath, dst: StrPath) -> None:
        """
        Move src to dst, replacing dst when kinds are compatible.

        Raises:
            NotFoundError: If src, or dst's parent, does not exist.
            TypeMismatchError: If one side is a directory and the other is not.
            PermissionDeniedError: If dst or either parent is readonly.
        """
        ...

    def copy(self, src: StrPath, dst: StrPath) -> None:
        """
        Copy a file's content to a new or existing file. Directories are
        never copied.

        Raises:
            NotFoundError: If src does not exist.
            NotFileError: If src is a directory.
            TypeMismatchError: If dst is a directory.
        """
        ...

    def symlink(self, target: StrPath, link_path: StrPath) -> None:
        """
        Create a symlink at link_path pointing at target. The target is not
        validated and may dangle.

        Raises:
            AlreadyExistsError: If link_path already exists.
            NotFoundError: If link_path's parent does not exist.
        """
        ...

    def readlink(self, path: StrPath) -> str:
        """
        Return the stored target of a symlink.

        Raises:
            NotFoundError: If path does not exist.
            InvalidPathError: If path is not a symlink.
        """
        ...

    def read_dir(self, path: StrPath) -> Iterator[DirEntry]:
        """
        Iterate the immediate children of a directory.

        Returns:
            A one-shot iterator of DirEntry objects.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
        """
        ...

    def size(self, path: StrPath) -> int:
        """Return a file's length in bytes, or 0 for missing or non-file paths."""
        ...

    def mode(self, path: StrPath) -> int:
        """Return the permission bits of path, following symlinks."""
        ...

    def set_mode(self, path: StrPath, mode: int) -> None:
        """Set the permission bits of path, following symlinks."""
        ...

    def readonly(self, path: StrPath) -> bool:
        """Return True when path has no write bits set."""
        ...

    def set_readonly(self, path: StrPath, readonly: bool) -> None:
        """Clear (readonly=True) or set (readonly=False) all write bits."""
        ...

    def temp_dir(self, prefix: str = "") -> TempDir:
        """
        Create a uniquely named temporary directory.

        Returns:
            A TempDir guard that removes the directory tree when released.

        Example:
            >>> with fs.temp_dir('build-') as tmp:
            ...     fs.write_file(f'{tmp.path}/out.txt', b'ok')
        """
        ...


@contextmanager
def _native_errors(path: str | None = None, *, rename: bool = False) -> Iterator[None]:
    """Re-raise native OSErrors as their dualfs equivalents."""
    try:
        yield
    except FileSystemError:
        raise
    except OSError as e:
        raise translate_os_error(e, path, rename=rename) from e


class RealFileSystem:
    """
    Real file system implementation using os, shutil and tempfile.

    This is the production implementation that performs actual I/O.
    Each method delegates to the corresponding standard library call and
    relies on the operating system for atomicity and concurrency.

    Business context: Used in production; swapped for MemoryFileSystem in
    tests. Errors are translated so both backends raise the same types.
    """

    def current_dir(self) -> str:
        """
        Return the process working directory.

        Delegates to os.getcwd(), which reports the physical path.

        Returns:
            Absolute path of the working directory.

        Raises:
            NotFoundError: If the working directory was removed.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.current_dir()
            '/home/user/project'
        """
        with _native_errors():
            return os.getcwd()

    def set_current_dir(self, path: StrPath) -> None:
        """
        Change the process working directory.

        Delegates to os.chdir(). The change is process-wide, not
        per-instance.

        Args:
            path: Directory to make current.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
        """
        path = os.fspath(path)
        with _native_errors(path):
            os.chdir(path)

    def exists(self, path: StrPath) -> bool:  # pragma: no cover
        """
        Check if path exists on the real filesystem.

        Delegates to os.path.exists(), which follows symlinks, so a
        dangling link reports False.

        Args:
            path: Path to check.

        Returns:
            True if path resolves to an existing entry.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.exists('/tmp')
            True
        """
        return os.path.exists(path)

    def is_dir(self, path: StrPath) -> bool:  # pragma: no cover
        """
        Check if path is a directory on disk.

        Delegates to os.path.isdir(), following symlinks.

        Args:
            path: Path to check.

        Returns:
            True if path exists and resolves to a directory.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.is_dir('/tmp')
            True
        """
        return os.path.isdir(path)

    def is_file(self, path: StrPath) -> bool:  # pragma: no cover
        """
        Check if path is a regular file on disk.

        Delegates to os.path.isfile(), following symlinks.

        Args:
            path: Path to check.

        Returns:
            True if path exists and resolves to a regular file.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.is_file('/etc/passwd')
            True
        """
        return os.path.isfile(path)

    def is_symlink(self, path: StrPath) -> bool:  # pragma: no cover
        """
        Check if path itself is a symbolic link.

        Delegates to os.path.islink(). Dangling links report True.

        Args:
            path: Path to check.

        Returns:
            True if the entry at path is a symlink.
        """
        return os.path.islink(path)

    def create_dir(self, path: StrPath) -> None:
        """
        Create exactly one directory on disk.

        Delegates to os.mkdir(); ancestors are never created.

        Args:
            path: Directory to create.

        Raises:
            NotFoundError: If the parent does not exist.
            AlreadyExistsError: If path already exists.
            PermissionDeniedError: If the parent is not writable.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.create_dir('/tmp/build')
        """
        path = os.fspath(path)
        with _native_errors(path):
            os.mkdir(path)

    def create_dir_all(self, path: StrPath) -> None:
        """
        Create directory and parent directories on disk.

        Delegates to os.makedirs() with exist_ok=True. An existing file at
        path still raises, because makedirs only tolerates directories.

        Business context: The `mkdir -p` idiom; installers call it on every
        run without checking what already exists.

        Args:
            path: Directory to create.

        Raises:
            NotDirectoryError: If an intermediate component is a file.
            NotFoundError: If an intermediate component is a dangling link.
            AlreadyExistsError: If path exists but is not a directory.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.create_dir_all('/tmp/data/sessions')
        """
        path = os.fspath(path)
        with _native_errors(path):
            os.makedirs(path, exist_ok=True)

    def create_file(self, path: StrPath, content: bytes = b"") -> None:
        """
        Create a new file on disk, failing if it exists.

        Opens in exclusive mode ("xb"), so two creators never both win.

        Args:
            path: File to create.
            content: Initial content.

        Raises:
            NotFoundError: If the parent does not exist.
            AlreadyExistsError: If path already exists.
        """
        path = os.fspath(path)
        with _native_errors(path), open(path, "xb") as f:
            f.write(content)

    def write_file(self, path: StrPath, content: bytes) -> None:
        """
        Create or replace a file on disk.

        Opens in "wb", truncating existing content. A trailing symlink is
        followed, so writing through a dangling link creates its target.

        Args:
            path: File to write.
            content: Bytes that become the whole content.

        Raises:
            NotFoundError: If the parent does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is not writable.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.write_file('/tmp/out.bin', b'data')
        """
        path = os.fspath(path)
        with _native_errors(path), open(path, "wb") as f:
            f.write(content)

    def overwrite_file(self, path: StrPath, content: bytes) -> None:
        """
        Replace the content of an existing file on disk.

        Opens in "r+b" so a missing file fails instead of being created,
        then truncates after writing.

        Args:
            path: Existing file.
            content: Replacement content.

        Raises:
            NotFoundError: If the file does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is not writable.
        """
        path = os.fspath(path)
        with _native_errors(path), open(path, "r+b") as f:
            f.write(content)
            f.truncate()

    def read_file(self, path: StrPath) -> bytes:
        """
        Read file contents from disk as bytes.

        Args:
            path: File to read; symlinks are followed.

        Returns:
            The complete file content.

        Raises:
            NotFoundError: If the file does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is not readable.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.read_file('/etc/hostname')
            b'devbox\\n'
        """
        path = os.fspath(path)
        with _native_errors(path), open(path, "rb") as f:
            return f.read()

    def read_file_to_string(self, path: StrPath) -> str:
        """
        Read file contents from disk decoded as UTF-8.

        Args:
            path: File to read.

        Returns:
            Decoded content.

        Raises:
            InvalidDataError: If the content is not valid UTF-8.
            Plus every error read_file() raises.
        """
        path = os.fspath(path)
        data = self.read_file(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidDataError(path, str(e)) from e

    def read_file_into(self, path: StrPath, buffer: bytearray) -> int:
        """
        Append file contents to a caller-owned buffer.

        The buffer is untouched when the read fails.

        Args:
            path: File to read.
            buffer: Bytearray to extend.

        Returns:
            Number of bytes appended.
        """
        data = self.read_file(path)
        buffer.extend(data)
        return len(data)

    def remove_file(self, path: StrPath) -> None:
        """
        Delete a file or symlink from disk.

        A symlink is removed itself, even one pointing at a directory.

        Args:
            path: Entry to remove.

        Raises:
            NotFoundError: If path does not exist.
            NotFileError: If path is a real directory.
            PermissionDeniedError: If the containing directory is not
                writable.
        """
        path = os.fspath(path)
        # Platforms disagree on the errno for unlink() on a directory.
        if os.path.isdir(path) and not os.path.islink(path):
            raise NotFileError(path)
        with _native_errors(path):
            os.remove(path)

    def remove_dir(self, path: StrPath) -> None:
        """
        Delete an empty directory from disk.

        Delegates to os.rmdir().

        Args:
            path: Directory to remove.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
            DirectoryNotEmptyError: If the directory has entries.
        """
        path = os.fspath(path)
        with _native_errors(path):
            os.rmdir(path)

    def remove_dir_all(self, path: StrPath) -> None:
        """
        Remove a directory tree from disk.

        Delegates to shutil.rmtree(). A symlink is rejected up front since
        rmtree refuses links with an errno-less OSError. Only directory
        write bits are enforced (by the OS); readonly files inside writable
        directories are removed.

        Args:
            path: Directory to remove.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is a symlink or a file.
            PermissionDeniedError: If a directory involved is not writable.
        """
        path = os.fspath(path)
        if os.path.islink(path):
            raise NotDirectoryError(path)
        with _native_errors(path):
            shutil.rmtree(path)

    def rename(self, src: StrPath, dst: StrPath) -> None:
        """
        Rename or move a file or directory on disk.

        Atomic when source and destination are on the same filesystem.
        Directory/non-directory conflicts surface as TypeMismatchError.

        Args:
            src: Entry to move; a symlink is moved as a link.
            dst: New location.

        Raises:
            NotFoundError: If src or dst's parent does not exist.
            TypeMismatchError: If one side is a directory and the other not.
            DirectoryNotEmptyError: If dst is a non-empty directory.
        """
        src, dst = os.fspath(src), os.fspath(dst)
        with _native_errors(src, rename=True):
            os.rename(src, dst)

    def copy(self, src: StrPath, dst: StrPath) -> None:
        """
        Copy file content from src to dst.

        Uses shutil.copyfile for content; a newly created destination also
        receives the source's permission bits via shutil.copymode.

        Args:
            src: File to copy; symlinks are followed.
            dst: New or existing file.

        Raises:
            NotFoundError: If src does not exist.
            NotFileError: If src is a directory.
            TypeMismatchError: If dst is a directory.
        """
        src, dst = os.fspath(src), os.fspath(dst)
        if os.path.isdir(dst):
            raise TypeMismatchError(dst)
        created = not os.path.exists(dst)
        with _native_errors(src):
            shutil.copyfile(src, dst)
            if created:
                shutil.copymode(src, dst)

    def symlink(self, target: StrPath, link_path: StrPath) -> None:
        """
        Create a symbolic link on disk.

        Args:
            target: Stored verbatim; need not exist.
            link_path: Where the link is created.

        Raises:
            AlreadyExistsError: If link_path exists.
            NotFoundError: If link_path's parent does not exist.
        """
        link_path = os.fspath(link_path)
        with _native_errors(link_path):
            os.symlink(os.fspath(target), link_path)

    def readlink(self, path: StrPath) -> str:
        """
        Return the stored target of a symlink.

        Raises:
            NotFoundError: If path does not exist.
            InvalidPathError: If path is not a symlink.
        """
        path = os.fspath(path)
        with _native_errors(path):
            return os.readlink(path)

    def read_dir(self, path: StrPath) -> Iterator[DirEntry]:
        """
        Iterate the immediate children of a directory on disk.

        The directory is opened immediately, so lookup errors raise here
        rather than on first iteration. Order is whatever the OS returns.

        Args:
            path: Directory to list.

        Returns:
            One-shot iterator of DirEntry; symlinks are reported as such.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
        """
        path = os.fspath(path)
        with _native_errors(path):
            scanner = os.scandir(path)
        return _scan_entries(scanner)

    def size(self, path: StrPath) -> int:
        """
        Return a regular file's length in bytes.

        Returns:
            st_size for regular files; 0 for directories, other special
            files, and paths that cannot be stat'ed. Never raises.
        """
        try:
            st = os.stat(path)
        except OSError:
            return 0
        return st.st_size if stat.S_ISREG(st.st_mode) else 0

    def mode(self, path: StrPath) -> int:
        """
        Return the permission bits of path, following symlinks.

        Raises:
            NotFoundError: If path does not exist.
        """
        path = os.fspath(path)
        with _native_errors(path):
            return stat.S_IMODE(os.stat(path).st_mode)

    def set_mode(self, path: StrPath, mode: int) -> None:
        """
        Change permission bits on disk.

        Delegates to os.chmod() with file-type bits masked off.

        Args:
            path: Target; symlinks are followed.
            mode: New mode (e.g. 0o644).

        Raises:
            NotFoundError: If path does not exist.

        Example:
            >>> fs = RealFileSystem()
            >>> fs.set_mode('/tmp/out.bin', 0o600)
        """
        path = os.fspath(path)
        with _native_errors(path):
            os.chmod(path, mode & Config.MODE_MASK)

    def readonly(self, path: StrPath) -> bool:
        """Return True when path has no write bits set."""
        return self.mode(path) & Config.WRITE_BITS == 0

    def set_readonly(self, path: StrPath, readonly: bool) -> None:
        """
        Clear or grant every write bit of path.

        Args:
            path: Target; symlinks are followed.
            readonly: True clears 0o222, False sets it.

        Raises:
            NotFoundError: If path does not exist.
        """
        current = self.mode(path)
        if readonly:
            self.set_mode(path, current & ~Config.WRITE_BITS)
        else:
            self.set_mode(path, current | Config.WRITE_BITS)

    def temp_dir(self, prefix: str = "") -> TempDir:
        """
        Create a temporary directory under the system temp root.

        Delegates naming and placement to tempfile.mkdtemp().

        Args:
            prefix: Leading part of the directory name.

        Returns:
            TempDir guard; releasing it removes the tree with
            remove_dir_all().
        """
        from .tempdir import TempDir

        with _native_errors():
            path = tempfile.mkdtemp(prefix=prefix)
        logger.debug(f"Created temp dir: {path}")
        return TempDir(self, path)


def _scan_entries(scanner: Iterator[os.DirEntry[str]]) -> Iterator[DirEntry]:
    with scanner:  # type: ignore[attr-defined]
        for entry in scanner:
            if entry.is_symlink():
                kind = NodeKind.SYMLINK
            elif entry.is_dir(follow_symlinks=False):
                kind = NodeKind.DIRECTORY
            else:
                kind = NodeKind.FILE
            yield DirEntry(name=entry.name, path=entry.path, kind=kind)
