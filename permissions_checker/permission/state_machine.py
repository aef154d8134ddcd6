"""
Permission State Machine - owns the controlled-folder registry.

Each registered folder is either LOCKED (r-xr-xr-x) or UNLOCKED (rwxrwxrwx).
Transitions always walk the whole set in registration order:

- a folder missing on disk is skipped with a warning
- the first OS failure aborts the rest of the call (no rollback)
- a record's `locked` flag changes only after its OS call succeeded
"""

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import FolderMissing, PermissionChangeError
from ..logger import StructuredLogger, get_logger
from .modes import PermissionApplier, PermissionMode, select_applier

COMPONENT = "state_machine"


@dataclass
class FolderRecord:
    """Last-known permission state of one controlled folder.

    Attributes:
        path: Folder path as registered (unique key)
        locked: Mode most recently applied by this process
    """
    path: str
    locked: bool = True

    @property
    def mode(self) -> PermissionMode:
        return PermissionMode.LOCKED if self.locked else PermissionMode.UNLOCKED


@dataclass
class TransitionResult:
    """Outcome of a lock_all()/unlock_all() call.

    Attributes:
        mode: Mode that was requested
        applied: Folders whose permissions were changed
        skipped: Folders skipped because they do not exist
    """
    mode: PermissionMode
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class PermissionStateMachine:
    """Applies LOCKED/UNLOCKED to every controlled folder as a group.

    Example:
        machine = PermissionStateMachine(["./data", "./shared"])
        machine.unlock_all()
        machine.is_fully_unlocked()  # True
    """

    def __init__(
        self,
        folders: Iterable[str] = (),
        applier: Optional[PermissionApplier] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """Register the default folders, creating them if absent.

        Args:
            folders: Default controlled folder paths
            applier: Platform applier (default: select_applier())
            logger: Structured logger (default: global logger)
        """
        self._applier = applier or select_applier()
        self._logger = logger or get_logger()
        self._records: Dict[str, FolderRecord] = {}

        for folder in folders:
            self.register(folder)

    def register(self, path: str) -> None:
        """Add a folder to the controlled set, initially locked.

        The directory (and any parents) is created if it does not exist.
        Registering an already controlled path does nothing.
        """
        path = os.fspath(path)
        if path in self._records:
            return

        if not os.path.exists(path):
            try:
                os.makedirs(path, exist_ok=True)
                self._logger.info(COMPONENT, "folder_created", {"path": path})
            except OSError as e:
                # Still registered; transitions will skip it as missing
                self._logger.error(COMPONENT, "folder_create_failed", {
                    "path": path,
                    "error": str(e),
                })

        self._records[path] = FolderRecord(path=path, locked=True)
        self._logger.debug(COMPONENT, "folder_registered", {"path": path})

    def unregister(self, path: str) -> None:
        """Stop controlling a folder. Its on-disk permissions are left as is."""
        path = os.fspath(path)
        if self._records.pop(path, None) is not None:
            self._logger.debug(COMPONENT, "folder_unregistered", {"path": path})

    def is_registered(self, path: str) -> bool:
        return os.fspath(path) in self._records

    def folders(self) -> Tuple[FolderRecord, ...]:
        """Copies of all records, in registration order."""
        return tuple(replace(record) for record in self._records.values())

    def paths(self) -> List[str]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def is_fully_unlocked(self) -> bool:
        """True iff no controlled folder is believed to be locked.

        Reads the cached state only; the OS is not queried.
        """
        return all(not record.locked for record in self._records.values())

    def lock_all(self) -> TransitionResult:
        """Set every controlled folder to r-xr-xr-x.

        Raises:
            PermissionChangeError: The OS refused a change; later folders
                were not attempted
        """
        return self._transition(PermissionMode.LOCKED)

    def unlock_all(self) -> TransitionResult:
        """Set every controlled folder to rwxrwxrwx.

        Raises:
            PermissionChangeError: The OS refused a change; later folders
                were not attempted
        """
        return self._transition(PermissionMode.UNLOCKED)

    def _transition(self, mode: PermissionMode) -> TransitionResult:
        result = TransitionResult(mode=mode)

        with self._logger.span(COMPONENT, f"transition_{mode.value}", {
            "folders": len(self._records),
            "applier": self._applier.name,
        }) as span:
            for record in list(self._records.values()):
                try:
                    self._apply(record.path, mode)
                except FolderMissing as e:
                    self._logger.warn(COMPONENT, "folder_missing", {"path": e.path})
                    result.skipped.append(record.path)
                    continue
                except PermissionChangeError as e:
                    e.result = result
                    raise

                record.locked = mode is PermissionMode.LOCKED
                result.applied.append(record.path)

            span.set_data({
                "applied": len(result.applied),
                "skipped": len(result.skipped),
            })

        return result

    def _apply(self, path: str, mode: PermissionMode) -> None:
        if not os.path.exists(path):
            raise FolderMissing(path)

        try:
            self._applier.apply(path, mode)
        except OSError as e:
            self._logger.error(COMPONENT, "permission_change_failed", {
                "path": path,
                "mode": mode.value,
                "error": str(e),
            })
            raise PermissionChangeError(path, mode.value, e.strerror or str(e)) from e

        self._logger.info(COMPONENT, "permission_changed", {
            "path": path,
            "mode": mode.value,
            "bits": mode.symbolic,
        })
