"""
Typed failures shared by every dualfs backend.

PURPOSE: One failure taxonomy so callers never care which backend raised.
AI CONTEXT: Every public operation raises only FileSystemError subclasses.

DESIGN:
- ErrorKind names the failure category independently of any backend
- Each exception class also inherits the matching builtin OSError subclass,
  so `except FileNotFoundError` keeps working for callers written against
  plain Python file APIs
- translate_os_error() maps native OSErrors by errno for RealFileSystem

USAGE:
    from dualfs.errors import ErrorKind, FileSystemError, NotFoundError

    try:
        fs.read_file("/missing")
    except NotFoundError:
        ...
    except FileSystemError as e:
        if e.kind is ErrorKind.PERMISSION_DENIED:
            ...
"""

from __future__ import annotations

import errno
import os
from enum import Enum
from typing import ClassVar

__all__ = [
    "ErrorKind",
    "FileSystemError",
    "NotFoundError",
    "AlreadyExistsError",
    "NotDirectoryError",
    "NotFileError",
    "DirectoryNotEmptyError",
    "PermissionDeniedError",
    "InvalidPathError",
    "TypeMismatchError",
    "InvalidDataError",
    "translate_os_error",
]


class ErrorKind(str, Enum):
    """Backend-independent failure categories."""

    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NOT_A_DIRECTORY = "not_a_directory"
    NOT_A_FILE = "not_a_file"
    DIRECTORY_NOT_EMPTY = "directory_not_empty"
    PERMISSION_DENIED = "permission_denied"
    INVALID_PATH = "invalid_path"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_DATA = "invalid_data"
    OTHER = "other"


class FileSystemError(OSError):
    """
    Base class for every failure raised by a dualfs backend.

    Behaves like a regular OSError: `errno`, `strerror` and `filename` are
    populated, and str() renders as "[Errno N] message: 'path'".

    Attributes:
        kind: ErrorKind category of the failure.
        code: Default errno used when no native errno is supplied.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.OTHER
    code: ClassVar[int] = errno.EIO

    def __init__(
        self,
        path: str | None = None,
        detail: str | None = None,
        *,
        errno_code: int | None = None,
    ) -> None:
        """
        Build the error from a path and an optional detail message.

        Args:
            path: Path the failed operation was applied to, if any.
            detail: Human-readable message. Defaults to os.strerror(errno).
            errno_code: Native errno to report instead of the class default.
        """
        code = self.code if errno_code is None else errno_code
        super().__init__(code, detail or os.strerror(code), path)


class NotFoundError(FileSystemError, FileNotFoundError):
    """Path does not resolve to any existing node."""

    kind = ErrorKind.NOT_FOUND
    code = errno.ENOENT


class AlreadyExistsError(FileSystemError, FileExistsError):
    """Create-type operation targeted an existing path."""

    kind = ErrorKind.ALREADY_EXISTS
    code = errno.EEXIST


class NotDirectoryError(FileSystemError, NotADirectoryError):
    """A Directory was required but another kind of node was found."""

    kind = ErrorKind.NOT_A_DIRECTORY
    code = errno.ENOTDIR


class NotFileError(FileSystemError, IsADirectoryError):
    """A File was required but another kind of node was found."""

    kind = ErrorKind.NOT_A_FILE
    code = errno.EISDIR


class DirectoryNotEmptyError(FileSystemError):
    """Non-recursive removal of a populated directory."""

    kind = ErrorKind.DIRECTORY_NOT_EMPTY
    code = errno.ENOTEMPTY


class PermissionDeniedError(FileSystemError, PermissionError):
    """Mutation attempted on a readonly target."""

    kind = ErrorKind.PERMISSION_DENIED
    code = errno.EACCES


class InvalidPathError(FileSystemError):
    """Malformed or unresolvable path, including symlink loops."""

    kind = ErrorKind.INVALID_PATH
    code = errno.EINVAL


class TypeMismatchError(FileSystemError):
    """Rename or copy between node kinds that cannot replace each other."""

    kind = ErrorKind.TYPE_MISMATCH
    code = errno.EISDIR


class InvalidDataError(FileSystemError):
    """File content could not be decoded as requested."""

    kind = ErrorKind.INVALID_DATA
    code = errno.EILSEQ


_ERRNO_MAP: dict[int, type[FileSystemError]] = {
    errno.ENOENT: NotFoundError,
    errno.EEXIST: AlreadyExistsError,
    errno.ENOTDIR: NotDirectoryError,
    errno.EISDIR: NotFileError,
    errno.ENOTEMPTY: DirectoryNotEmptyError,
    errno.EACCES: PermissionDeniedError,
    errno.EPERM: PermissionDeniedError,
    errno.EROFS: PermissionDeniedError,
    errno.EINVAL: InvalidPathError,
    errno.ELOOP: InvalidPathError,
    errno.ENAMETOOLONG: InvalidPathError,
}

# Some platforms report a non-empty rename target as EEXIST instead.
_RENAME_ERRNO_MAP: dict[int, type[FileSystemError]] = {
    **_ERRNO_MAP,
    errno.EISDIR: TypeMismatchError,
    errno.ENOTDIR: TypeMismatchError,
    errno.EEXIST: DirectoryNotEmptyError,
}


def translate_os_error(
    exc: OSError, path: str | None = None, *, rename: bool = False
) -> FileSystemError:
    """
    Convert a native OSError into the dualfs taxonomy.

    Business context: RealFileSystem forwards to the kernel, whose errors
    arrive as builtin OSError subclasses. Translating by errno gives callers
    the same exception types MemoryFileSystem raises, so test suites written
    against one backend behave identically on the other.

    Args:
        exc: Native exception raised by os/shutil/open.
        path: Path to report when the native error carries no filename.
        rename: Apply rename-specific mapping (kind conflicts become
            TypeMismatchError).

    Returns:
        A FileSystemError subclass instance. Already-translated errors are
        returned unchanged. Unknown errnos map to FileSystemError with the
        native errno preserved.

    Example:
        >>> err = translate_os_error(FileNotFoundError(2, 'No such file', '/x'))
        >>> type(err).__name__, err.kind
        ('NotFoundError', <ErrorKind.NOT_FOUND: 'not_found'>)
    """
    if isinstance(exc, FileSystemError):
        return exc
    table = _RENAME_ERRNO_MAP if rename else _ERRNO_MAP
    filename = exc.filename if exc.filename is not None else path
    if filename is not None:
        filename = os.fsdecode(filename)
    error_cls = table.get(exc.errno) if exc.errno is not None else None
    if error_cls is None:
        return FileSystemError(filename, exc.strerror, errno_code=exc.errno or errno.EIO)
    return error_cls(filename, exc.strerror)
