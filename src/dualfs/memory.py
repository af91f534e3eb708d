"""
In-memory FileSystem backend.

PURPOSE: Deterministic, side-effect-free stand-in for RealFileSystem.
AI CONTEXT: Implements the full FileSystem protocol on a Node Tree.

DESIGN:
- One Directory root owns every node; PathResolver turns paths into
  tree locations
- Every public operation holds one re-entrant lock for its whole duration,
  so each call appears atomic to any other call (single-writer model)
- All checks run before the first mutation: a failing call leaves the tree
  exactly as it found it
- The current directory is per-instance state, consulted for relative paths

USAGE:
    fs = MemoryFileSystem()
    fs.create_dir_all("/project/src")
    fs.write_file("/project/src/main.py", b"print('hi')")
    with fs.temp_dir() as tmp:
        fs.copy("/project/src/main.py", f"{tmp.path}/main.py")
"""

from __future__ import annotations

import itertools
import logging
import os
import posixpath
import threading
from collections.abc import Iterator
from typing import cast

from .config import Config
from .errors import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    FileSystemError,
    InvalidDataError,
    InvalidPathError,
    NotDirectoryError,
    NotFileError,
    NotFoundError,
    PermissionDeniedError,
    TypeMismatchError,
)
from .filesystem import DirEntry, StrPath
from .nodes import Directory, File, Node, Symlink
from .resolver import SEPARATOR, Location, PathResolver, split_path
from .tempdir import TempDir

__all__ = ["MemoryFileSystem"]

logger = logging.getLogger(__name__)


class MemoryFileSystem:
    """
    In-memory file system.

    Reproduces real filesystem semantics (symlinks, readonly enforcement,
    recursive removal, rename overwrite rules) without touching storage.
    Satisfies the FileSystem protocol structurally.

    THREAD SAFETY:
    Whole-tree lock per operation. Iterators returned by read_dir() are
    snapshots and never observe later mutations.

    Business context: Injected in place of RealFileSystem by test suites
    that need fast, isolated runs with no leftover files on disk.
    """

    def __init__(self) -> None:
        self._root = Directory(mode=Config.ROOT_MODE)
        self._resolver = PathResolver(self._root)
        self._cwd = SEPARATOR
        self._lock = threading.RLock()
        self._temp_names = itertools.count(1)

    # =========================================================================
    # LOOKUP HELPERS
    # =========================================================================

    def _resolve(self, path: str, follow: bool = True) -> Location:
        return self._resolver.resolve(path, cwd=self._cwd, follow=follow)

    def _locate(self, path: str, follow: bool = False) -> Location:
        return self._resolver.locate(path, cwd=self._cwd, follow=follow)

    def _directory(self, path: str) -> Location:
        location = self._resolve(path)
        if not isinstance(location.node, Directory):
            raise NotDirectoryError(path)
        return location

    def _file(self, path: str) -> File:
        node = self._resolve(path).node
        if not isinstance(node, File):
            raise NotFileError(path)
        return node

    def _readable_file(self, path: str) -> File:
        file = self._file(path)
        if not file.readable:
            raise PermissionDeniedError(path)
        return file

    def _writable_file(self, path: str) -> File:
        file = self._file(path)
        if file.readonly:
            raise PermissionDeniedError(path)
        return file

    def _insert(self, location: Location, node: Node, path: str) -> None:
        parent = location.parent
        if parent is None or location.node is not None:
            raise AlreadyExistsError(path)
        if parent.readonly:
            raise PermissionDeniedError(path)
        parent.children[location.name] = node

    def _metadata_node(self, path: StrPath) -> Directory | File:
        # A followed lookup never ends on a Symlink.
        return cast("Directory | File", self._resolve(os.fspath(path)).node)

    # =========================================================================
    # CURRENT DIRECTORY
    # =========================================================================

    def current_dir(self) -> str:
        """
        Return the simulated working directory.

        Business context: Code under test that builds paths from the
        working directory sees a stable value, independent of the process
        cwd.

        Returns:
            Absolute physical path of the working directory.

        Raises:
            NotFoundError: If the directory was removed after being set.
            NotDirectoryError: If its path now names something else.

        Example:
            >>> fs = MemoryFileSystem()
            >>> fs.current_dir()
            '/'
        """
        with self._lock:
            self._directory(self._cwd)
            return self._cwd

    def set_current_dir(self, path: StrPath) -> None:
        """
        Change the simulated working directory.

        Stores the physical path reached, so a symlinked directory is
        recorded by its real location, as getcwd() reports on a real OS.
        Only this instance is affected; the process cwd never changes.

        Args:
            path: Directory to make current; relative paths resolve
                against the present working directory.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
        """
        with self._lock:
            self._cwd = self._directory(os.fspath(path)).path

    # =========================================================================
    # QUERIES
    # =========================================================================

    def exists(self, path: StrPath) -> bool:
        """
        Check if path exists in the simulated tree.

        Follows symlinks, so a dangling link reports False. Lookup failures
        (symlink loops, a file in the middle of the path) also report False.

        Args:
            path: Path to check.

        Returns:
            True if path resolves to a node.

        Example:
            >>> fs = MemoryFileSystem()
            >>> fs.exists('/missing')
            False
        """
        with self._lock:
            try:
                self._resolve(os.fspath(path))
            except FileSystemError:
                return False
            return True

    def is_dir(self, path: StrPath) -> bool:
        """
        Check if path resolves to a directory.

        Args:
            path: Path to check; symlinks are followed.

        Returns:
            True for a directory; False for anything else, including
            missing and unresolvable paths. Never raises.
        """
        with self._lock:
            try:
                return isinstance(self._resolve(os.fspath(path)).node, Directory)
            except FileSystemError:
                return False

    def is_file(self, path: StrPath) -> bool:
        """
        Check if path resolves to a file.

        Args:
            path: Path to check; symlinks are followed.

        Returns:
            True for a file; False for anything else, including missing
            and unresolvable paths. Never raises.
        """
        with self._lock:
            try:
                return isinstance(self._resolve(os.fspath(path)).node, File)
            except FileSystemError:
                return False

    def is_symlink(self, path: StrPath) -> bool:
        """
        Check if the entry at path is itself a symlink.

        The final component is not followed, so dangling links report True.
        """
        with self._lock:
            try:
                return isinstance(self._resolve(os.fspath(path), follow=False).node, Symlink)
            except FileSystemError:
                return False

    def size(self, path: StrPath) -> int:
        """
        Return a file's content length in bytes.

        Args:
            path: Path to measure; symlinks are followed.

        Returns:
            Byte length for files; 0 for directories and for missing or
            unresolvable paths. Never raises.
        """
        with self._lock:
            try:
                node = self._resolve(os.fspath(path)).node
            except FileSystemError:
                return 0
            return node.size if isinstance(node, File) else 0

    # =========================================================================
    # CREATION
    # =========================================================================

    def create_dir(self, path: StrPath) -> None:
        """
        Create exactly one directory.

        The new directory gets Config.DEFAULT_DIR_MODE. A trailing symlink
        counts as an existing entry and is not followed.

        Args:
            path: Directory to create.

        Raises:
            NotFoundError: If the parent does not exist.
            NotDirectoryError: If a component of the parent path is a file.
            AlreadyExistsError: If any entry already exists at path.
            PermissionDeniedError: If the parent is readonly.

        Example:
            >>> fs = MemoryFileSystem()
            >>> fs.create_dir('/data')
            >>> fs.is_dir('/data')
            True
        """
        path = os.fspath(path)
        with self._lock:
            location = self._locate(path)
            self._insert(location, Directory(), path)
            logger.debug(f"Created directory: {location.path}")

    def create_dir_all(self, path: StrPath) -> None:
        """
        Create a directory and all missing ancestors.

        Walks the path one prefix at a time. Existing directories (or links
        to them) are passed through; the first missing component and every
        one after it are created. Nothing is created when an existing
        component turns out to be a file or a dangling link, because
        existing components are always checked before anything below them.
        A dangling link is never replaced by a directory at its target.

        Raises:
            NotDirectoryError: If an intermediate component is a file.
            NotFoundError: If an intermediate component is a dangling link.
            AlreadyExistsError: If the final component exists as a
                non-directory or is a dangling link.
            PermissionDeniedError: If the first missing component's parent is
                readonly.
        """
        path = os.fspath(path)
        with self._lock:
            absolute = path if path.startswith(SEPARATOR) else posixpath.join(self._cwd, path)
            segments = split_path(absolute)
            prefix = ""
            for index, segment in enumerate(segments):
                prefix = f"{prefix}{SEPARATOR}{segment}"
                is_last = index == len(segments) - 1
                location = self._locate(prefix)
                node = location.node
                if isinstance(node, Symlink):
                    try:
                        node = self._resolve(prefix).node
                    except NotFoundError:
                        if is_last:
                            raise AlreadyExistsError(path) from None
                        raise NotFoundError(path) from None
                if node is None:
                    self._insert(location, Directory(), path)
                    logger.debug(f"Created directory: {location.path}")
                elif not isinstance(node, Directory):
                    if is_last:
                        raise AlreadyExistsError(path)
                    raise NotDirectoryError(path)

    def create_file(self, path: StrPath, content: bytes = b"") -> None:
        """
        Create a new file, failing if anything exists at path.

        Business context: The exclusive-create primitive; concurrent
        callers racing for one name see exactly one success.

        Args:
            path: File to create.
            content: Initial content; copied, so later changes to the
                caller's buffer have no effect.

        Raises:
            NotFoundError: If the parent does not exist.
            AlreadyExistsError: If any entry already exists at path.
            PermissionDeniedError: If the parent is readonly.
        """
        path = os.fspath(path)
        with self._lock:
            location = self._locate(path)
            self._insert(location, File(bytes(content)), path)
            logger.debug(f"Created file: {location.path} ({len(content)} bytes)")

    def write_file(self, path: StrPath, content: bytes) -> None:
        """
        Create or replace a file's content.

        Follows a trailing symlink; writing through a dangling link creates
        the link's target, as the OS does.

        Args:
            path: File to write.
            content: Bytes that become the whole content.

        Raises:
            NotFoundError: If the parent does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is readonly (content is left
                untouched), or a new file's parent is readonly.
        """
        path = os.fspath(path)
        with self._lock:
            location = self._locate(path, follow=True)
            if location.node is None:
                self._insert(location, File(bytes(content)), path)
                logger.debug(f"Created file: {location.path} ({len(content)} bytes)")
                return
            if not isinstance(location.node, File):
                raise NotFileError(path)
            if location.node.readonly:
                raise PermissionDeniedError(path)
            location.node.content = bytes(content)

    def overwrite_file(self, path: StrPath, content: bytes) -> None:
        """
        Replace the content of an existing file; never creates one.

        Raises:
            NotFoundError: If the file does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file is readonly.
        """
        path = os.fspath(path)
        with self._lock:
            self._writable_file(path).content = bytes(content)

    def symlink(self, target: StrPath, link_path: StrPath) -> None:
        """
        Create a symlink without checking that its target exists.

        Args:
            target: Stored verbatim; relative targets resolve against the
                link's own directory at lookup time.
            link_path: Where the link is created.

        Raises:
            NotFoundError: If link_path's parent does not exist.
            AlreadyExistsError: If any entry already exists at link_path.
            PermissionDeniedError: If the parent is readonly.
        """
        link_path = os.fspath(link_path)
        with self._lock:
            location = self._locate(link_path)
            self._insert(location, Symlink(os.fspath(target)), link_path)
            logger.debug(f"Created symlink: {location.path} -> {os.fspath(target)}")

    # =========================================================================
    # READING
    # =========================================================================

    def read_file(self, path: StrPath) -> bytes:
        """
        Return a file's content, following symlinks.

        Args:
            path: File to read.

        Returns:
            The complete content.

        Raises:
            NotFoundError: If path or a followed link's target is missing.
            NotFileError: If path is a directory.
            NotDirectoryError: If a non-final component is a file.
            PermissionDeniedError: If the file has no read bits.
            InvalidPathError: If resolution hits a symlink loop.

        Example:
            >>> fs = MemoryFileSystem()
            >>> fs.write_file('/a.txt', b'hi')
            >>> fs.read_file('/a.txt')
            b'hi'
        """
        with self._lock:
            return self._readable_file(os.fspath(path)).content

    def read_file_to_string(self, path: StrPath) -> str:
        """
        Return a file's content decoded as UTF-8.

        Raises:
            InvalidDataError: If the content is not valid UTF-8.
            Plus every error read_file() raises.
        """
        path = os.fspath(path)
        content = self.read_file(path)
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidDataError(path, str(e)) from e

    def read_file_into(self, path: StrPath, buffer: bytearray) -> int:
        """
        Append a file's content to buffer.

        The buffer is untouched when the read fails.

        Returns:
            Number of bytes appended.
        """
        content = self.read_file(path)
        buffer.extend(content)
        return len(content)

    def readlink(self, path: StrPath) -> str:
        """
        Return a symlink's stored target, exactly as given to symlink().

        Raises:
            NotFoundError: If path does not exist.
            InvalidPathError: If the entry at path is not a symlink.
        """
        path = os.fspath(path)
        with self._lock:
            node = self._resolve(path, follow=False).node
            if not isinstance(node, Symlink):
                raise InvalidPathError(path, "Not a symbolic link")
            return node.target

    def read_dir(self, path: StrPath) -> Iterator[DirEntry]:
        """
        Iterate the immediate children of a directory.

        Entries come out in insertion order. The listing is taken under the
        lock when read_dir() is called, so the iterator is finite and
        unaffected by later mutations; like any iterator it cannot be
        restarted.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
        """
        path = os.fspath(path)
        with self._lock:
            directory = self._directory(path).node
            entries = [
                DirEntry(name=name, path=posixpath.join(path, name), kind=node.kind)
                for name, node in directory.children.items()
            ]
        return iter(entries)

    # =========================================================================
    # REMOVAL
    # =========================================================================

    def remove_file(self, path: StrPath) -> None:
        """
        Remove a file or a symlink.

        A symlink is removed itself; its target is never touched.

        Args:
            path: Entry to remove.

        Raises:
            NotFoundError: If path does not exist.
            NotFileError: If path is a directory.
            PermissionDeniedError: If the file or its parent is readonly.
        """
        path = os.fspath(path)
        with self._lock:
            location = self._resolve(path, follow=False)
            node = location.node
            if isinstance(node, Directory):
                raise NotFileError(path)
            if isinstance(node, File) and node.readonly:
                raise PermissionDeniedError(path)
            if location.parent.readonly:
                raise PermissionDeniedError(path)
            del location.parent.children[location.name]
            logger.debug(f"Removed {node.kind.value}: {location.path}")

    def remove_dir(self, path: StrPath) -> None:
        """
        Remove an empty directory.

        A symlink to a directory is not followed and is rejected.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory.
            DirectoryNotEmptyError: If the directory has children.
            InvalidPathError: If path is the root directory.
            PermissionDeniedError: If the parent is readonly.
        """
        path = os.fspath(path)
        with self._lock:
            location = self._resolve(path, follow=False)
            if location.is_root:
                raise InvalidPathError(path, "Cannot remove the root directory")
            node = location.node
            if not isinstance(node, Directory):
                raise NotDirectoryError(path)
            if not node.is_empty:
                raise DirectoryNotEmptyError(path)
            if location.parent.readonly:
                raise PermissionDeniedError(path)
            del location.parent.children[location.name]
            logger.debug(f"Removed directory: {location.path}")

    def remove_dir_all(self, path: StrPath) -> None:
        """
        Remove a directory and its whole subtree.

        Every directory and file involved is checked for the readonly flag
        before anything is detached, so a refused removal leaves the subtree
        intact. This is stricter than RealFileSystem, where the OS removes
        readonly files inside writable directories.

        Raises:
            NotFoundError: If path does not exist.
            NotDirectoryError: If path is not a directory (links included).
            InvalidPathError: If path is the root directory.
            PermissionDeniedError: If the parent, the directory, or any node
                beneath it is readonly.
        """
        path = os.fspath(path)
        with self._lock:
            location = self._resolve(path, follow=False)
            if location.is_root:
                raise InvalidPathError(path, "Cannot remove the root directory")
            node = location.node
            if not isinstance(node, Directory):
                raise NotDirectoryError(path)
            if location.parent.readonly or node.readonly:
                raise PermissionDeniedError(path)
            if any(not isinstance(child, Symlink) and child.readonly for child in node.walk()):
                raise PermissionDeniedError(path, "Readonly entry inside directory")
            del location.parent.children[location.name]
            logger.debug(f"Removed directory tree: {location.path}")

    # =========================================================================
    # MOVING AND COPYING
    # =========================================================================

    def rename(self, src: StrPath, dst: StrPath) -> None:
        """
        Move an entry, replacing the destination when kinds agree.

        Symlinks are moved as links, never through their targets.

        OVERWRITE RULES:
        - Directory onto Directory: the destination subtree is replaced
        - Non-directory onto non-directory: the destination is replaced
        - Directory onto non-directory, or the reverse: TypeMismatchError
        - Directory into its own subtree: InvalidPathError
        - An entry onto itself: no-op

        The entry is detached and re-attached inside one locked section,
        after all checks pass.

        Raises:
            NotFoundError: If src, or dst's parent, does not exist.
            TypeMismatchError: If the kinds conflict.
            InvalidPathError: If either side is the root, or the move would
                nest a directory inside itself.
            PermissionDeniedError: If dst or either parent is readonly.
        """
        src, dst = os.fspath(src), os.fspath(dst)
        with self._lock:
            source = self._resolve(src, follow=False)
            target = self._locate(dst)
            if source.is_root:
                raise InvalidPathError(src, "Cannot rename the root directory")
            if target.is_root:
                raise InvalidPathError(dst, "Cannot replace the root directory")
            if target.node is source.node:
                return

            moving_dir = isinstance(source.node, Directory)
            if target.node is not None:
                if moving_dir != isinstance(target.node, Directory):
                    raise TypeMismatchError(dst)
                if any(ancestor is target.node for ancestor in source.ancestors):
                    raise InvalidPathError(dst, "Cannot replace an ancestor of the source")
                if not isinstance(target.node, Symlink) and target.node.readonly:
                    raise PermissionDeniedError(dst)
            if moving_dir and any(ancestor is source.node for ancestor in target.ancestors):
                raise InvalidPathError(dst, "Cannot move a directory into itself")
            if source.parent.readonly:
                raise PermissionDeniedError(src)
            if target.parent.readonly:
                raise PermissionDeniedError(dst)

            del source.parent.children[source.name]
            target.parent.children[target.name] = source.node
            logger.debug(f"Renamed {source.path} -> {target.path}")

    def copy(self, src: StrPath, dst: StrPath) -> None:
        """
        Copy a file's content to dst.

        A new destination takes the source's mode bits; an existing one
        keeps its own. Links are followed on both sides.

        Raises:
            NotFoundError: If src or dst's parent does not exist.
            NotFileError: If src is a directory.
            TypeMismatchError: If dst is a directory.
            PermissionDeniedError: If src is unreadable or dst is readonly.
        """
        src, dst = os.fspath(src), os.fspath(dst)
        with self._lock:
            source = self._readable_file(src)
            target = self._locate(dst, follow=True)
            if target.node is None:
                self._insert(target, File(source.content, mode=source.mode), dst)
            elif isinstance(target.node, Directory):
                raise TypeMismatchError(dst)
            elif target.node.readonly:
                raise PermissionDeniedError(dst)
            else:
                target.node.content = source.content
            logger.debug(f"Copied {src} -> {target.path} ({len(source.content)} bytes)")

    # =========================================================================
    # PERMISSIONS
    # =========================================================================

    def mode(self, path: StrPath) -> int:
        """
        Return the stored permission bits, following symlinks.

        Raises:
            NotFoundError: If path does not exist.
        """
        with self._lock:
            return self._metadata_node(path).mode

    def set_mode(self, path: StrPath, mode: int) -> None:
        """
        Store new permission bits, following symlinks.

        Only the bits in Config.MODE_MASK are kept, so an st_mode value
        with file-type bits can be passed straight through.

        Args:
            path: Target entry.
            mode: New mode (e.g. 0o644).

        Raises:
            NotFoundError: If path does not exist.

        Example:
            >>> fs = MemoryFileSystem()
            >>> fs.create_file('/a')
            >>> fs.set_mode('/a', 0o100600)
            >>> oct(fs.mode('/a'))
            '0o600'
        """
        with self._lock:
            self._metadata_node(path).mode = mode & Config.MODE_MASK

    def readonly(self, path: StrPath) -> bool:
        """Return True when path has none of its write bits set."""
        with self._lock:
            return self._metadata_node(path).readonly

    def set_readonly(self, path: StrPath, readonly: bool) -> None:
        """
        Clear (readonly=True) or grant (readonly=False) every write bit.

        Raises:
            NotFoundError: If path does not exist.
        """
        with self._lock:
            self._metadata_node(path).readonly = readonly

    # =========================================================================
    # TEMPORARY DIRECTORIES
    # =========================================================================

    def temp_dir(self, prefix: str = "") -> TempDir:
        """
        Create a uniquely named directory under Config.temp_root().

        The temp root is created on first use. Names are `<prefix>tmp<n>`
        with n counting up per filesystem, skipping names already taken, so
        runs are reproducible.

        Returns:
            TempDir guard; releasing it removes the directory tree.

        Raises:
            PermissionDeniedError: If the temp root is readonly.
        """
        with self._lock:
            root = Config.temp_root()
            self.create_dir_all(root)
            while True:
                candidate = posixpath.join(root, f"{prefix}tmp{next(self._temp_names)}")
                location = self._locate(candidate)
                if location.node is None:
                    break
            self._insert(location, Directory(), candidate)
            logger.debug(f"Created temp dir: {location.path}")
            return TempDir(self, location.path)

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def list_files(self) -> list[str]:
        """
        List every file path in the tree, sorted.

        Business context: Lets tests assert exactly which files an
        operation produced without walking the tree themselves.
        """
        with self._lock:
            return sorted(p for p, n in self._entries() if isinstance(n, File))

    def list_dirs(self) -> list[str]:
        """List every directory path except the root, sorted."""
        with self._lock:
            return sorted(p for p, n in self._entries() if isinstance(n, Directory))

    def clear(self) -> None:
        """Drop every node and reset the working directory to the root."""
        with self._lock:
            self._root.children.clear()
            self._root.mode = Config.ROOT_MODE
            self._cwd = SEPARATOR

    def _entries(
        self, directory: Directory | None = None, base: str = ""
    ) -> Iterator[tuple[str, Node]]:
        directory = self._root if directory is None else directory
        for name, node in directory.children.items():
            path = f"{base}{SEPARATOR}{name}"
            yield path, node
            if isinstance(node, Directory):
                yield from self._entries(node, path)
