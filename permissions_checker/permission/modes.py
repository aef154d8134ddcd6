"""
Permission modes and the platform appliers that put them on disk.

A PermissionMode names what a folder should look like (LOCKED or UNLOCKED).
A PermissionApplier knows how to make the OS agree:

- PosixModeApplier: sets the full owner/group/other bits with chmod
- WritableFlagApplier: toggles only the write flag, for platforms without
  POSIX permission bits (Windows)

The applier is picked once at startup with select_applier() and handed to
the state machine, so the transition logic never branches on the platform.
"""

import os
import stat
from enum import Enum
from typing import Optional


class PermissionMode(Enum):
    """Target permission mode for a controlled folder."""
    LOCKED = "locked"
    UNLOCKED = "unlocked"

    @property
    def bits(self) -> int:
        """POSIX permission bits for this mode."""
        if self is PermissionMode.LOCKED:
            return 0o555
        return 0o777

    @property
    def symbolic(self) -> str:
        """Permission string in ls -l form, e.g. r-xr-xr-x."""
        return stat.filemode(self.bits)[1:]

    @property
    def writable(self) -> bool:
        return self is PermissionMode.UNLOCKED

    @property
    def label(self) -> str:
        """Human-readable name used in command output."""
        return "read-write" if self.writable else "read-only"


class PermissionApplier:
    """Applies a PermissionMode to a single existing directory.

    Subclasses raise OSError when the OS refuses the change; the state
    machine turns that into a PermissionChangeError.
    """

    name = "base"

    def apply(self, path: str, mode: PermissionMode) -> None:
        raise NotImplementedError


class PosixModeApplier(PermissionApplier):
    """Sets r-xr-xr-x / rwxrwxrwx on POSIX systems."""

    name = "posix"

    def apply(self, path: str, mode: PermissionMode) -> None:
        os.chmod(path, mode.bits)


class WritableFlagApplier(PermissionApplier):
    """Coarse fallback that only toggles the write flag.

    On Windows os.chmod() maps S_IWRITE onto the read-only attribute and
    ignores every other bit, so read and execute access are never touched.
    """

    name = "writable-flag"

    def apply(self, path: str, mode: PermissionMode) -> None:
        current = stat.S_IMODE(os.stat(path).st_mode)
        if mode.writable:
            new_mode = current | stat.S_IWRITE
        else:
            new_mode = current & ~stat.S_IWRITE
        os.chmod(path, new_mode | stat.S_IREAD)


def select_applier(os_name: Optional[str] = None) -> PermissionApplier:
    """Pick the applier for the running platform.

    Args:
        os_name: Value of os.name to select for (default: the current one)

    Returns:
        PosixModeApplier on POSIX, WritableFlagApplier elsewhere
    """
    if (os_name or os.name) == "posix":
        return PosixModeApplier()
    return WritableFlagApplier()
