"""
Permission System - folder lock/unlock state machine and admin gate.

Provides:
- PermissionMode: LOCKED (r-xr-xr-x) / UNLOCKED (rwxrwxrwx)
- PermissionApplier: platform strategy that puts a mode on disk
- PermissionStateMachine: controlled-folder registry and transitions
- AccessGate / Action: admin check in front of every transition
"""

from .modes import (
    PermissionApplier,
    PermissionMode,
    PosixModeApplier,
    WritableFlagApplier,
    select_applier,
)
from .state_machine import FolderRecord, PermissionStateMachine, TransitionResult
from .gate import AccessGate, Action

__all__ = [
    "AccessGate",
    "Action",
    "FolderRecord",
    "PermissionApplier",
    "PermissionMode",
    "PermissionStateMachine",
    "PosixModeApplier",
    "TransitionResult",
    "WritableFlagApplier",
    "select_applier",
]
