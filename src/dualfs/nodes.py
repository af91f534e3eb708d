"""
Node Tree for the in-memory backend.

PURPOSE: Data structure holding the simulated namespace.
AI CONTEXT: Nodes know nothing about paths; PathResolver walks them.

DESIGN:
- Strict ownership tree: a node is reachable only through its one parent
  Directory's `children` mapping
- Symlinks store a target string and are never containment edges
- Readonly is derived from mode bits, the same way the OS derives it
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .config import Config

__all__ = ["NodeKind", "Directory", "File", "Symlink", "Node"]


class NodeKind(str, Enum):
    """The three kinds of node a simulated tree can hold."""

    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"


class _PermissionBits:
    """Mode-bit helpers shared by Directory and File."""

    mode: int

    @property
    def readonly(self) -> bool:
        return self.mode & Config.WRITE_BITS == 0

    @readonly.setter
    def readonly(self, value: bool) -> None:
        if value:
            self.mode &= ~Config.WRITE_BITS
        else:
            self.mode |= Config.WRITE_BITS

    @property
    def readable(self) -> bool:
        return self.mode & Config.READ_BITS != 0


@dataclass(eq=False)
class Directory(_PermissionBits):
    """
    Directory node: insertion-ordered children plus mode bits.

    Names in `children` are unique by construction (dict keys).
    """

    children: dict[str, Node] = field(default_factory=dict)
    mode: int = Config.DEFAULT_DIR_MODE

    kind = NodeKind.DIRECTORY

    @property
    def is_empty(self) -> bool:
        return not self.children

    def walk(self) -> Iterator[Node]:
        """Yield every descendant node, depth first, parents before children."""
        for child in self.children.values():
            yield child
            if isinstance(child, Directory):
                yield from child.walk()


@dataclass(eq=False)
class File(_PermissionBits):
    """File node holding its content as immutable bytes."""

    content: bytes = b""
    mode: int = Config.DEFAULT_FILE_MODE

    kind = NodeKind.FILE

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(eq=False)
class Symlink:
    """Symbolic link; `target` may be relative, absolute, or dangling."""

    target: str

    kind = NodeKind.SYMLINK


Node = Union[Directory, File, Symlink]
