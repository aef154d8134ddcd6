"""Tests for the command surface and entry point."""

import io
import os
import shutil

import pytest

from permissions_checker import cli
from permissions_checker.cli import PermissionsChecker, main
from permissions_checker.config import AppConfig
from permissions_checker.errors import PermissionChangeError
from permissions_checker.logger import get_logger
from permissions_checker.permission import PermissionStateMachine
from permissions_checker.principal import Principal

from .conftest import RecordingApplier

ADMIN = Principal("root", is_admin=True)
USER = Principal("alice", is_admin=False)


def _app(folder_paths, principal, applier, stdin=None):
    machine = PermissionStateMachine(folder_paths, applier=applier)
    return PermissionsChecker(AppConfig(), principal, machine, stdin=stdin)


class TestCommands:
    def test_enable_denied_for_non_admin(self, folder_paths, applier, capsys):
        app = _app(folder_paths, USER, applier)

        assert app.process_command("enable") is True

        out = capsys.readouterr().out
        assert "Error: Admin privileges required to enable write permissions." in out
        assert applier.calls == []
        assert all(record.locked for record in app.machine.folders())

    def test_disable_denied_for_non_admin(self, folder_paths, applier, capsys):
        app = _app(folder_paths, USER, applier)

        app.process_command("disable")

        assert "Admin privileges required to disable" in capsys.readouterr().out
        assert applier.calls == []

    def test_status_after_enable(self, folder_paths, applier, capsys):
        app = _app(folder_paths, ADMIN, applier)

        app.process_command("ENABLE")
        app.process_command("status")

        out = capsys.readouterr().out
        assert "Write permissions enabled successfully." in out
        assert "Write Permissions Enabled: true" in out
        assert "Controlled Folders: 3" in out
        assert app.machine.is_fully_unlocked()

    def test_disable_as_admin(self, folder_paths, applier, capsys):
        app = _app(folder_paths, ADMIN, applier)
        app.process_command("enable")

        app.process_command("disable")

        assert "Write permissions disabled successfully." in capsys.readouterr().out
        assert not app.machine.is_fully_unlocked()

    def test_missing_folder_reported_as_warning(self, folder_paths, applier, capsys):
        app = _app(folder_paths, ADMIN, applier)
        shutil.rmtree(folder_paths[2])

        app.process_command("enable")

        out = capsys.readouterr().out
        assert f"Warning: Folder does not exist: {folder_paths[2]}" in out
        assert f"Set {folder_paths[0]} to read-write" in out
        assert "Write permissions enabled successfully." in out

    def test_failure_still_reports_earlier_folders(self, folder_paths, capsys):
        applier = RecordingApplier(fail_on=[folder_paths[2]])
        app = _app(folder_paths, ADMIN, applier)
        shutil.rmtree(folder_paths[0])

        with pytest.raises(PermissionChangeError):
            app.process_command("enable")

        out = capsys.readouterr().out
        assert f"Warning: Folder does not exist: {folder_paths[0]}" in out
        assert f"Set {folder_paths[1]} to read-write" in out
        assert f"Set {folder_paths[2]}" not in out
        assert "Write permissions enabled successfully." not in out

    def test_folders_lists_state(self, folder_paths, applier, capsys):
        app = _app(folder_paths, ADMIN, applier)

        app.process_command("folders")

        out = capsys.readouterr().out
        for path in folder_paths:
            assert f"{path}: read-only" in out

    def test_unknown_command(self, folder_paths, applier, capsys):
        app = _app(folder_paths, ADMIN, applier)

        assert app.process_command("frobnicate") is True

        out = capsys.readouterr().out
        assert "Unknown command: frobnicate" in out
        assert "Type 'help' for available commands." in out

    def test_help_lists_commands(self, folder_paths, applier, capsys):
        _app(folder_paths, USER, applier).process_command("help")

        out = capsys.readouterr().out
        for name in ("enable", "disable", "status", "help", "exit"):
            assert name in out

    def test_exit_stops(self, folder_paths, applier):
        assert _app(folder_paths, USER, applier).process_command(" Exit ") is False


class TestInitialize:
    def test_locks_everything_and_reports_user(self, folder_paths, applier, capsys):
        app = _app(folder_paths, USER, applier)

        app.initialize()

        out = capsys.readouterr().out
        assert "Current user: alice" in out
        assert "Admin privileges: false" in out
        assert [path for path, _ in applier.calls] == folder_paths


class TestInteractive:
    def test_loop_survives_errors_until_exit(self, folder_paths, capsys):
        applier = RecordingApplier(fail_on=[folder_paths[0]])
        stdin = io.StringIO("bogus\n\nenable\nstatus\nexit\nstatus\n")
        app = _app(folder_paths, ADMIN, applier, stdin=stdin)

        assert app.run_interactive() == 0

        captured = capsys.readouterr()
        assert "Unknown command: bogus" in captured.out
        assert "Error executing command: Failed to change permissions for" in captured.err
        assert captured.out.count("Current Status:") == 1

    def test_end_of_input_ends_loop(self, folder_paths, applier):
        app = _app(folder_paths, USER, applier, stdin=io.StringIO("status\n"))
        assert app.run_interactive() == 0


class TestMain:
    @pytest.fixture
    def workspace(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for var in list(os.environ):
            if var.startswith("PERMISSIONS_CHECKER_"):
                monkeypatch.delenv(var)
        config_path = tmp_path / "config.yaml"
        config_path.write_text("controlled.folders: ./one,./two\n")
        return config_path

    def _use_principal(self, monkeypatch, principal):
        monkeypatch.setattr(cli, "detect_principal", lambda *args, **kwargs: principal)

    def test_one_shot_status(self, workspace, monkeypatch, capsys):
        self._use_principal(monkeypatch, USER)

        assert main(["status", "-c", str(workspace)]) == 0

        out = capsys.readouterr().out
        assert "Controlled Folders: 2" in out
        assert (workspace.parent / "one").is_dir()

    def test_one_shot_transition_failure_exits_1(self, workspace, monkeypatch, capsys):
        self._use_principal(monkeypatch, ADMIN)
        failing = RecordingApplier(fail_on=["./two"])
        monkeypatch.setattr(cli, "select_applier", lambda: failing)

        assert main(["enable", "-c", str(workspace)]) == 1
        assert "Error: Failed to change permissions for ./two" in capsys.readouterr().err

    def test_write_config(self, workspace, monkeypatch, capsys):
        target = workspace.parent / "written.yaml"

        assert main(["--write-config", "-c", str(target)]) == 0

        assert target.exists()
        assert "Configuration saved to" in capsys.readouterr().out

    def test_log_enabled_env_is_honoured(self, workspace, monkeypatch):
        self._use_principal(monkeypatch, USER)
        monkeypatch.setenv("PERMISSIONS_CHECKER_LOG_ENABLED", "0")

        assert main(["status", "-c", str(workspace)]) == 0
        assert get_logger().enabled is False
