"""
Path resolution over the in-memory Node Tree.

PURPOSE: Translate a path string into a location in a Directory tree.
AI CONTEXT: MemoryFileSystem never walks nodes itself - it asks PathResolver.

ALGORITHM:
1. Relative paths are joined onto the caller's current directory
2. The path is split on "/"; empty and "." segments are dropped
3. Segments are consumed from the root one at a time:
   - Directory: look the next name up among its children
   - Symlink (not final, or final when following): splice the link's target
     segments in front of the remaining ones, restarting from the root for
     absolute targets
   - File with segments remaining: NotDirectoryError
   - "..": step back to the parent of the directory actually reached
4. The final node is returned as found; a trailing symlink is expanded only
   when the caller asks to follow it

LOOP PROTECTION:
Every expansion counts against Config.max_symlink_depth(). Reaching the same
link again with the same remaining segments is a true cycle and fails at
once. Both raise InvalidPathError.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from .config import Config
from .errors import InvalidPathError, NotDirectoryError, NotFoundError
from .nodes import Directory, Node, Symlink

__all__ = ["Location", "PathResolver", "split_path"]

SEPARATOR = "/"


def split_path(path: str) -> list[str]:
    """Split a path into segments, dropping empty and "." segments."""
    return [segment for segment in path.split(SEPARATOR) if segment and segment != "."]


@dataclass
class Location:
    """
    Where a path landed in the tree.

    Attributes:
        path: Normalized absolute path of the entry as physically reached.
        parent: Directory owning the entry; None for the root.
        name: Entry name inside `parent` ("" for the root).
        node: The node found, or None when the final entry is missing and
            the lookup allowed that.
        ancestors: Directories walked from the root down to `parent`.
    """

    path: str
    parent: Directory | None
    name: str
    node: Node | None
    ancestors: tuple[Directory, ...] = ()

    @property
    def is_root(self) -> bool:
        return self.parent is None


class PathResolver:
    """
    Walks a Directory tree by path.

    The resolver holds no per-call state; each lookup builds its own walk
    chain, so one instance can serve every operation of a filesystem.
    """

    def __init__(self, root: Directory) -> None:
        self.root = root

    def resolve(self, path: str, *, cwd: str = SEPARATOR, follow: bool = True) -> Location:
        """
        Locate an existing entry.

        Args:
            path: Absolute or relative path.
            cwd: Directory relative paths are joined onto.
            follow: Expand a trailing symlink. Intermediate symlinks are
                always expanded.

        Returns:
            Location whose `node` is never None.

        Raises:
            NotFoundError: A segment (or a followed link's target) is missing.
            NotDirectoryError: A non-final segment is a File.
            InvalidPathError: Symlink loop or expansion bound exceeded.
        """
        return self._walk(path, cwd, follow, allow_missing=False)

    def locate(self, path: str, *, cwd: str = SEPARATOR, follow: bool = False) -> Location:
        """
        Locate an entry that may not exist yet.

        Same as resolve(), except a missing final segment yields a Location
        with `node=None` inside its (existing) parent. Create-type
        operations use this to find where to insert.
        """
        return self._walk(path, cwd, follow, allow_missing=True)

    def _walk(self, path: str, cwd: str, follow: bool, allow_missing: bool) -> Location:
        absolute = path if path.startswith(SEPARATOR) else f"{cwd.rstrip(SEPARATOR)}/{path}"
        pending = deque(split_path(absolute))
        chain: list[tuple[str, Directory]] = [("", self.root)]
        seen: set[tuple[int, tuple[str, ...]]] = set()
        expansions = 0
        limit = Config.max_symlink_depth()

        while pending:
            name = pending.popleft()
            if name == "..":
                if len(chain) > 1:
                    chain.pop()
                continue

            node = chain[-1][1].children.get(name)
            is_last = not pending
            if node is None:
                if is_last and allow_missing:
                    return _location(chain, name, None)
                raise NotFoundError(path)

            if isinstance(node, Symlink) and (follow or not is_last):
                expansions += 1
                key = (id(node), tuple(pending))
                if key in seen or expansions > limit:
                    raise InvalidPathError(path, "Too many levels of symbolic links")
                seen.add(key)
                if not node.target:
                    raise NotFoundError(path)
                if node.target.startswith(SEPARATOR):
                    del chain[1:]
                pending.extendleft(reversed(split_path(node.target)))
                continue

            if is_last:
                return _location(chain, name, node)
            if not isinstance(node, Directory):
                raise NotDirectoryError(path)
            chain.append((name, node))

        # Ran out of segments on a directory: "/", a trailing "..", or a
        # link that expanded to a directory.
        name, directory = chain[-1]
        return _location(chain[:-1], name, directory)


def _location(chain: list[tuple[str, Directory]], name: str, node: Node | None) -> Location:
    if not chain:
        return Location(path=SEPARATOR, parent=None, name="", node=node)
    names = [segment for segment, _ in chain[1:]]
    names.append(name)
    return Location(
        path=SEPARATOR + SEPARATOR.join(names),
        parent=chain[-1][1],
        name=name,
        node=node,
        ancestors=tuple(directory for _, directory in chain),
    )
