"""
dualfs - one filesystem interface, two interchangeable backends.

PURPOSE: Let build tools, installers and test harnesses be written once
against an abstract filesystem and run unmodified on the real OS or in memory.

PACKAGE STRUCTURE:
- filesystem.py: FileSystem protocol, DirEntry, RealFileSystem (OS backend)
- memory.py: MemoryFileSystem (in-memory backend)
- resolver.py: Path resolution over the in-memory node tree
- nodes.py: Directory, File and Symlink nodes
- tempdir.py: TempDir guard for scoped temporary directories
- errors.py: Typed failures shared by both backends
- config.py: Configuration constants and environment settings

QUICK START:
    from dualfs import MemoryFileSystem, RealFileSystem

    def install(fs, prefix):
        fs.create_dir_all(f"{prefix}/bin")
        fs.write_file(f"{prefix}/bin/tool", b"#!/bin/sh\n")
        fs.set_mode(f"{prefix}/bin/tool", 0o755)

    install(RealFileSystem(), "/opt/tool")   # production
    install(MemoryFileSystem(), "/opt/tool")  # tests
"""

from dualfs.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
    __version_date__,
)
from dualfs.errors import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    ErrorKind,
    FileSystemError,
    InvalidDataError,
    InvalidPathError,
    NotDirectoryError,
    NotFileError,
    NotFoundError,
    PermissionDeniedError,
    TypeMismatchError,
)
from dualfs.filesystem import DirEntry, FileSystem, RealFileSystem
from dualfs.memory import MemoryFileSystem
from dualfs.nodes import NodeKind
from dualfs.tempdir import TempDir

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
    "FileSystem",
    "RealFileSystem",
    "MemoryFileSystem",
    "DirEntry",
    "NodeKind",
    "TempDir",
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
]
