"""Tests for the folder permission state machine."""

import os
import shutil
import stat

import pytest

from permissions_checker.errors import PermissionChangeError
from permissions_checker.permission import PermissionMode, PermissionStateMachine, PosixModeApplier

from .conftest import RecordingApplier

posix_only = pytest.mark.skipif(os.name != "posix", reason="requires POSIX permission bits")


def _bits(path):
    return stat.S_IMODE(os.stat(path).st_mode)


class TestConstruction:
    def test_registers_default_folders_locked(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)

        assert machine.paths() == folder_paths
        assert len(machine) == 3
        assert all(record.locked for record in machine.folders())

    def test_creates_missing_folders(self, folder_paths, applier):
        PermissionStateMachine(folder_paths, applier=applier)

        for path in folder_paths:
            assert os.path.isdir(path)

    def test_construction_makes_no_permission_calls(self, folder_paths, applier):
        PermissionStateMachine(folder_paths, applier=applier)
        assert applier.calls == []

    def test_initial_state_is_not_unlocked(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)
        assert machine.is_fully_unlocked() is False


class TestRegistration:
    def test_register_then_unregister_restores_count(self, folder_paths, applier, tmp_path):
        machine = PermissionStateMachine(folder_paths, applier=applier)
        extra = str(tmp_path / "test_folder")

        machine.register(extra)
        assert len(machine) == 4
        assert machine.is_registered(extra)

        machine.unregister(extra)
        assert len(machine) == 3
        assert extra not in machine.paths()

    def test_register_creates_intermediate_directories(self, applier, tmp_path):
        nested = tmp_path / "a" / "b" / "c"
        machine = PermissionStateMachine(applier=applier)

        machine.register(str(nested))

        assert nested.is_dir()
        assert machine.folders()[0].locked is True

    def test_register_twice_is_noop(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)
        machine.unlock_all()

        machine.register(folder_paths[0])

        assert len(machine) == 3
        assert machine.folders()[0].locked is False

    def test_unregister_leaves_disk_permissions(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)
        machine.unregister(folder_paths[0])

        assert os.path.isdir(folder_paths[0])
        assert applier.calls == []

    def test_unregister_unknown_path_is_ignored(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)
        machine.unregister("/does/not/matter")
        assert len(machine) == 3

    def test_folders_returns_copies(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)

        machine.folders()[0].locked = False

        assert machine.folders()[0].locked is True


class TestTransitions:
    def test_unlock_then_lock(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)

        result = machine.unlock_all()
        assert machine.is_fully_unlocked() is True
        assert result.applied == folder_paths
        assert result.skipped == []

        machine.lock_all()
        assert machine.is_fully_unlocked() is False
        assert all(record.locked for record in machine.folders())

    def test_transitions_visit_folders_in_registration_order(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)
        machine.unlock_all()

        assert applier.calls == [(path, PermissionMode.UNLOCKED) for path in folder_paths]

    def test_empty_set_is_fully_unlocked(self, applier):
        machine = PermissionStateMachine(applier=applier)
        assert machine.is_fully_unlocked() is True
        assert machine.lock_all().applied == []

    def test_missing_folder_is_skipped(self, folder_paths, applier):
        machine = PermissionStateMachine(folder_paths, applier=applier)
        shutil.rmtree(folder_paths[1])

        result = machine.unlock_all()

        assert result.skipped == [folder_paths[1]]
        assert result.applied == [folder_paths[0], folder_paths[2]]
        assert [path for path, _ in applier.calls] == [folder_paths[0], folder_paths[2]]
        states = {record.path: record.locked for record in machine.folders()}
        assert states == {folder_paths[0]: False, folder_paths[1]: True, folder_paths[2]: False}

    def test_failure_aborts_remaining_folders(self, folder_paths):
        applier = RecordingApplier(fail_on=[folder_paths[1]])
        machine = PermissionStateMachine(folder_paths, applier=applier)

        with pytest.raises(PermissionChangeError) as exc_info:
            machine.unlock_all()

        assert exc_info.value.path == folder_paths[1]
        assert exc_info.value.mode == "unlocked"
        assert [path for path, _ in applier.calls] == folder_paths[:2]

        states = [record.locked for record in machine.folders()]
        assert states == [False, True, True]
        assert machine.is_fully_unlocked() is False

    def test_permission_change_error_message(self, folder_paths):
        applier = RecordingApplier(fail_on=[folder_paths[0]])
        machine = PermissionStateMachine(folder_paths, applier=applier)

        with pytest.raises(PermissionChangeError, match="Failed to change permissions for"):
            machine.lock_all()


@posix_only
class TestPosixBits:
    def test_lock_sets_read_execute_only(self, folder_paths):
        machine = PermissionStateMachine(folder_paths, applier=PosixModeApplier())

        machine.lock_all()

        for path in folder_paths:
            assert _bits(path) == 0o555

    def test_unlock_sets_full_access(self, folder_paths):
        machine = PermissionStateMachine(folder_paths, applier=PosixModeApplier())

        machine.unlock_all()

        for path in folder_paths:
            assert _bits(path) == 0o777

    def test_lock_is_idempotent(self, folder_paths):
        machine = PermissionStateMachine(folder_paths, applier=PosixModeApplier())

        machine.lock_all()
        once = [_bits(path) for path in folder_paths]
        machine.lock_all()
        twice = [_bits(path) for path in folder_paths]

        assert once == twice
        assert machine.is_fully_unlocked() is False


class TestPartialFailure:
    def test_error_carries_outcomes_before_failure(self, folder_paths):
        applier = RecordingApplier(fail_on=[folder_paths[2]])
        machine = PermissionStateMachine(folder_paths, applier=applier)
        shutil.rmtree(folder_paths[0])

        with pytest.raises(PermissionChangeError) as exc_info:
            machine.unlock_all()

        result = exc_info.value.result
        assert result.mode is PermissionMode.UNLOCKED
        assert result.skipped == [folder_paths[0]]
        assert result.applied == [folder_paths[1]]
