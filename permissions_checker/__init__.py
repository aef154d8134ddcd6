"""
Permissions Checker

Toggles write access to a fixed set of controlled folders on behalf of
non-admin users. Only admins may lock or unlock; anyone may ask for status.
"""

from .config import AppConfig, ConfigLoader, load_config
from .errors import (
    ConfigLoadError,
    ConfigSaveError,
    FolderMissing,
    PermissionChangeError,
    PermissionsCheckerError,
    ProbeFailure,
)
from .permission import (
    AccessGate,
    Action,
    FolderRecord,
    PermissionMode,
    PermissionStateMachine,
    TransitionResult,
)
from .principal import Principal, PrivilegeProbe, detect_principal

__version__ = "1.0.0"
__all__ = [
    "AccessGate",
    "Action",
    "AppConfig",
    "ConfigLoadError",
    "ConfigLoader",
    "ConfigSaveError",
    "FolderMissing",
    "FolderRecord",
    "PermissionChangeError",
    "PermissionMode",
    "PermissionStateMachine",
    "PermissionsCheckerError",
    "Principal",
    "PrivilegeProbe",
    "ProbeFailure",
    "TransitionResult",
    "detect_principal",
    "load_config",
]
