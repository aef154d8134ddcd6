"""Shared fixtures for permissions_checker tests."""

import errno

import pytest

from permissions_checker.logger import get_logger
from permissions_checker.permission import PermissionApplier, PermissionMode


class RecordingApplier(PermissionApplier):
    """Records every apply() call and can fail on chosen paths."""

    name = "recording"

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def apply(self, path: str, mode: PermissionMode) -> None:
        self.calls.append((path, mode))
        if path in self.fail_on:
            raise PermissionError(errno.EPERM, "Operation not permitted", path)


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep the global structured logger off disk and off the console."""
    logger = get_logger()
    logger.configure(enabled=True, level="INFO", log_directory=None, console_output=False)
    yield logger
    logger.close()


@pytest.fixture
def applier():
    return RecordingApplier()


@pytest.fixture
def folder_paths(tmp_path):
    return [str(tmp_path / name) for name in ("controlled_folder1", "controlled_folder2", "data")]
