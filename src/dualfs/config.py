"""
Configuration for dualfs.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All tunable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Permissions: Default mode bits for simulated directories and files
- Resolution: Symlink expansion bound
- Temporary directories: Reserved temp root inside the simulated tree

ENVIRONMENT VARIABLES:
- DUALFS_TEMP_ROOT: Temp root for MemoryFileSystem.temp_dir (default: /tmp)
- DUALFS_MAX_SYMLINK_DEPTH: Symlink expansions allowed per lookup (default: 40)

USAGE:
    from dualfs.config import Config
    depth = Config.max_symlink_depth()
    file_mode = Config.DEFAULT_FILE_MODE
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for dualfs.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    PERMISSION MODEL:
    - Only the permission bits (0o7777) of a mode are stored
    - A node is readonly when none of its write bits (0o222) are set
    - A file is unreadable when none of its read bits (0o444) are set
    """

    # =========================================================================
    # PERMISSION BITS
    # =========================================================================
    DEFAULT_DIR_MODE: ClassVar[int] = 0o755
    DEFAULT_FILE_MODE: ClassVar[int] = 0o644
    ROOT_MODE: ClassVar[int] = 0o755

    MODE_MASK: ClassVar[int] = 0o7777
    """Bits kept by set_mode(); file-type bits are never stored."""

    WRITE_BITS: ClassVar[int] = 0o222
    READ_BITS: ClassVar[int] = 0o444

    # =========================================================================
    # PATH RESOLUTION
    # =========================================================================
    MAX_SYMLINK_DEPTH: ClassVar[int] = 40
    """Matches the Linux ELOOP bound for a single path lookup."""

    # =========================================================================
    # TEMPORARY DIRECTORIES
    # =========================================================================
    TEMP_ROOT: ClassVar[str] = "/tmp"  # nosec B108 - path inside the simulated tree

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _temp_root_override: ClassVar[str | None] = None
    _max_symlink_depth_override: ClassVar[int | None] = None

    @classmethod
    def temp_root(cls) -> str:
        """
        Get the directory under which simulated temp directories are made.

        Uses a priority system: test overrides take precedence, then the
        DUALFS_TEMP_ROOT environment variable, then TEMP_ROOT.

        Business context: Code under test often hardcodes expectations about
        where scratch space lives. Keeping the simulated temp root
        configurable lets a test harness mirror its production layout.

        Returns:
            Absolute path string inside the simulated tree.

        Raises:
            None: Environment lookup never raises.

        Example:
            >>> Config.temp_root()
            '/tmp'
        """
        if cls._temp_root_override is not None:
            return cls._temp_root_override
        return os.environ.get("DUALFS_TEMP_ROOT") or cls.TEMP_ROOT

    @classmethod
    def max_symlink_depth(cls) -> int:
        """
        Get how many symlink expansions a single path lookup may perform.

        Test overrides win, then DUALFS_MAX_SYMLINK_DEPTH when it parses as
        a positive integer, then MAX_SYMLINK_DEPTH. Malformed environment
        values are ignored rather than raised, so a bad shell export can
        never break filesystem calls.

        Returns:
            Positive expansion bound.

        Example:
            >>> Config.max_symlink_depth()
            40
        """
        if cls._max_symlink_depth_override is not None:
            return cls._max_symlink_depth_override
        raw = os.environ.get("DUALFS_MAX_SYMLINK_DEPTH", "")
        if raw.isdigit() and int(raw) > 0:
            return int(raw)
        return cls.MAX_SYMLINK_DEPTH

    @classmethod
    def set_test_overrides(
        cls,
        temp_root: str | None = None,
        max_symlink_depth: int | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Allows tests to control settings without modifying environment
        variables. Must call reset_test_overrides() in test teardown to
        avoid affecting other tests.

        Args:
            temp_root: Override for the simulated temp root. None to clear.
            max_symlink_depth: Override for the expansion bound. None to clear.

        Returns:
            None. Modifies class-level state.

        Example:
            >>> Config.set_test_overrides(temp_root='/scratch')
            >>> Config.temp_root()
            '/scratch'
            >>> Config.reset_test_overrides()  # Clean up
        """
        cls._temp_root_override = temp_root
        cls._max_symlink_depth_override = max_symlink_depth

    @classmethod
    def reset_test_overrides(cls) -> None:
        """
        Reset all test overrides to use environment variables.

        Returns:
            None. Modifies class-level state.
        """
        cls._temp_root_override = None
        cls._max_symlink_depth_override = None
