"""Version information for dualfs."""

__version__ = "0.3.0"
__version_date__ = "2026-10-19"

__title__ = "dualfs"
__description__ = "Filesystem interface with an OS-backed and an in-memory backend"

__author__ = "Mark Grandau"

__license__ = "MIT"
__copyright__ = "Copyright 2025 Mark Grandau"

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
]
