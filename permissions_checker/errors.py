"""
Error types for the Permissions Checker.

Folder-level and probe-level failures are absorbed close to where they
happen with a fail-closed default. Only PermissionChangeError is meant to
reach the command layer.
"""

from typing import Optional


class PermissionsCheckerError(Exception):
    """Base class for all Permissions Checker errors."""


class FolderMissing(PermissionsCheckerError):
    """A controlled folder does not exist on disk."""

    def __init__(self, path: str):
        super().__init__(f"Folder does not exist: {path}")
        self.path = path


class PermissionChangeError(PermissionsCheckerError):
    """The OS refused or failed a permission change on a folder.

    Attributes:
        path: Folder whose permissions could not be changed
        mode: Name of the requested mode ("locked" or "unlocked")
        reason: Underlying OS error message
        result: Partial TransitionResult for the folders handled before
            the failure, attached by the state machine
    """

    def __init__(self, path: str, mode: str, reason: str = ""):
        message = f"Failed to change permissions for {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path
        self.mode = mode
        self.reason = reason
        self.result = None


class ProbeFailure(PermissionsCheckerError):
    """A privilege probe could not produce a definite answer."""

    def __init__(self, probe: str, reason: str, returncode: Optional[int] = None):
        super().__init__(f"{probe} probe failed: {reason}")
        self.probe = probe
        self.reason = reason
        self.returncode = returncode


class ConfigLoadError(PermissionsCheckerError):
    """Configuration file exists but could not be read or parsed."""


class ConfigSaveError(PermissionsCheckerError):
    """Configuration file could not be written."""
