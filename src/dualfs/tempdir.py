"""
Scoped temporary directories.

PURPOSE: Guarantee recursive removal of a directory when its scope ends.
AI CONTEXT: Returned by FileSystem.temp_dir() on both backends.

CLEANUP POLICY:
- release() removes the tree with fs.remove_dir_all()
- NotFoundError (already removed elsewhere): logged at debug, ignored
- Any other OSError: logged as a warning, never raised
- Release is idempotent; the context manager and an unreferenced guard
  (weakref.finalize, as tempfile.TemporaryDirectory does) both release

USAGE:
    with fs.temp_dir("build-") as tmp:
        fs.write_file(f"{tmp.path}/out.bin", data)
    # tree is gone here
"""

from __future__ import annotations

import logging
import weakref
from types import TracebackType
from typing import TYPE_CHECKING

from .errors import NotFoundError

if TYPE_CHECKING:
    from .filesystem import FileSystem

__all__ = ["TempDir"]

logger = logging.getLogger(__name__)


def _cleanup(fs: FileSystem, path: str) -> None:
    try:
        fs.remove_dir_all(path)
    except NotFoundError:
        logger.debug(f"Temp dir already removed: {path}")
    except OSError as e:
        logger.warning(f"Failed to remove temp dir {path}: {e}")
    else:
        logger.debug(f"Removed temp dir: {path}")


class TempDir:
    """
    Guard owning a temporary directory on a FileSystem.

    The guard keeps its filesystem alive until released, so cleanup always
    targets the backend that created the directory.

    Attributes:
        path: Absolute path of the guarded directory.
    """

    def __init__(self, fs: FileSystem, path: str) -> None:
        """
        Take ownership of an already-created directory.

        Args:
            fs: Backend the directory lives on.
            path: Absolute path of the directory.
        """
        self._path = path
        self._finalizer = weakref.finalize(self, _cleanup, fs, path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def released(self) -> bool:
        return not self._finalizer.alive

    def release(self) -> None:
        """
        Remove the directory tree now.

        Safe to call more than once; only the first call touches the
        filesystem. Failures are logged, never raised.
        """
        self._finalizer()

    def __enter__(self) -> TempDir:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __fspath__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        state = "released" if self.released else "active"
        return f"<TempDir {self._path!r} ({state})>"
