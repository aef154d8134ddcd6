"""
Command-line entry point for the Permissions Checker.

Usage:
    permissions-checker                  # Interactive mode
    permissions-checker status           # Run one command and exit
    permissions-checker enable -v        # Verbose structured logging
    permissions-checker -c my.yaml       # Use another config file
    permissions-checker --write-config   # Save the merged config and exit
"""

import argparse
import sys
from typing import Callable, List, Optional, TextIO

from .config import CONFIG_FILE, AppConfig, ConfigLoader
from .errors import PermissionChangeError
from .logger import get_logger
from .logging_config import configure_from_config, configure_from_environment
from .permission import (
    AccessGate,
    Action,
    PermissionStateMachine,
    TransitionResult,
    select_applier,
)
from .principal import Principal, default_probe, detect_principal

COMPONENT = "cli"

PROMPT = "permissions-checker> "

COMMANDS = [
    ("enable", "Enable writing by non-admin users (admin only)"),
    ("disable", "Disable writing by non-admin users (admin only)"),
    ("status", "Show current permission status"),
    ("folders", "List controlled folders and their state"),
    ("help", "Show this help message"),
    ("exit", "Exit the application"),
]


class PermissionsChecker:
    """Interactive command surface over the gate and the state machine.

    Example:
        app = PermissionsChecker(config, principal, machine)
        app.initialize()
        app.process_command("status")
    """

    def __init__(
        self,
        config: AppConfig,
        principal: Principal,
        machine: PermissionStateMachine,
        gate: Optional[AccessGate] = None,
        stdin: Optional[TextIO] = None,
    ):
        self.config = config
        self.principal = principal
        self.machine = machine
        self.gate = gate or AccessGate()
        self._stdin = stdin
        self._logger = get_logger()

    def initialize(self) -> None:
        """Lock every controlled folder before accepting commands.

        Raises:
            PermissionChangeError: A folder could not be locked
        """
        print(f"Initializing {self.config.app_name}...")
        print("Setting all controlled folders to read-only...")

        self._transition(self.machine.lock_all)

        print("Initialization complete.")
        print(f"Current user: {self.principal.name}")
        print(f"Admin privileges: {_yes_no(self.principal.is_admin)}")

    def run_interactive(self) -> int:
        """Read commands until `exit` or end of input. Returns exit code."""
        print(f"\n{self.config.app_name} is now in listening mode.")
        self.show_help()

        stdin = self._stdin or sys.stdin
        while True:
            print(PROMPT, end="", flush=True)
            line = stdin.readline()
            if not line:
                print()
                break

            command = line.strip()
            if not command:
                continue

            try:
                if not self.process_command(command):
                    break
            except PermissionChangeError as e:
                print(f"Error executing command: {e}", file=sys.stderr)

        return 0

    def process_command(self, command: str) -> bool:
        """Run a single command.

        Returns:
            False if the command asks to exit, True otherwise

        Raises:
            PermissionChangeError: A transition failed part-way
        """
        command = command.strip().lower()
        self._logger.debug(COMPONENT, "command_received", {"command": command})

        if command == "exit":
            return False
        if command == "enable":
            self.enable_write_permissions()
        elif command == "disable":
            self.disable_write_permissions()
        elif command == "status":
            self.show_status()
        elif command == "folders":
            self.show_folders()
        elif command == "help":
            self.show_help()
        else:
            print(f"Unknown command: {command}")
            print("Type 'help' for available commands.")
        return True

    def enable_write_permissions(self) -> bool:
        """Unlock all folders if the principal is an admin."""
        if not self._authorize(Action.UNLOCK):
            print("Error: Admin privileges required to enable write permissions.")
            return False

        print("Enabling write permissions for non-admin users...")
        self._transition(self.machine.unlock_all)
        print("Write permissions enabled successfully.")
        return True

    def disable_write_permissions(self) -> bool:
        """Lock all folders if the principal is an admin."""
        if not self._authorize(Action.LOCK):
            print("Error: Admin privileges required to disable write permissions.")
            return False

        print("Disabling write permissions for non-admin users...")
        self._transition(self.machine.lock_all)
        print("Write permissions disabled successfully.")
        return True

    def show_status(self) -> None:
        print("Current Status:")
        print(f"  User: {self.principal.name}")
        print(f"  Admin Role: {_yes_no(self.principal.is_admin)}")
        print(f"  Write Permissions Enabled: {_yes_no(self.machine.is_fully_unlocked())}")
        print(f"  Controlled Folders: {len(self.machine)}")

    def show_folders(self) -> None:
        records = self.machine.folders()
        if not records:
            print("No controlled folders.")
            return
        for record in records:
            print(f"  {record.path}: {record.mode.label}")

    def show_help(self) -> None:
        print(f"\n{self.config.app_name} Help:")
        for name, description in COMMANDS:
            print(f"  {name:<8}- {description}")
        print()

    def _authorize(self, action: Action) -> bool:
        granted = self.gate.authorize(self.principal, action)
        if not granted:
            self._logger.warn(COMPONENT, "authorization_denied", {
                "user": self.principal.name,
                "action": action.value,
            })
        return granted

    def _transition(self, operation: Callable[[], TransitionResult]) -> None:
        """Run a transition and print every per-folder outcome.

        Folders handled before a failure are still reported.
        """
        try:
            result = operation()
        except PermissionChangeError as e:
            if e.result is not None:
                self._report(e.result)
            raise
        self._report(result)

    def _report(self, result: TransitionResult) -> None:
        for path in result.skipped:
            print(f"Warning: Folder does not exist: {path}")
        for path in result.applied:
            print(f"Set {path} to {result.mode.label}")


def _yes_no(value: bool) -> str:
    return "true" if value else "false"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="permissions-checker",
        description="Toggle write access to controlled folders for non-admin users",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  enable    Enable writing by non-admin users (admin only)
  disable   Disable writing by non-admin users (admin only)
  status    Show current permission status
  folders   List controlled folders and their state
  help      Show help
  exit      Exit the application

Without a command, an interactive prompt is started.
        """
    )

    parser.add_argument(
        "command",
        nargs="?",
        help="Run a single command and exit"
    )

    parser.add_argument(
        "--config", "-c",
        dest="config_path",
        default=CONFIG_FILE,
        help=f"Configuration file (default: {CONFIG_FILE})"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Echo structured log entries to stderr"
    )

    parser.add_argument(
        "--write-config",
        dest="write_config",
        action="store_true",
        help="Save the merged configuration to the config file and exit"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 if a permission change failed
        during startup or a one-shot command)
    """
    args = create_parser().parse_args(argv)

    configure_from_environment()
    loader = ConfigLoader(config_path=args.config_path)
    config = loader.load()
    if args.verbose:
        config.verbose_logging = True
    configure_from_config(config)

    if args.write_config:
        if loader.save(config):
            print(f"Configuration saved to: {loader.config_path}")
        else:
            print(f"Warning: Could not save configuration file: {loader.config_path}")
        return 0

    logger = get_logger()
    principal = detect_principal(
        config.admin_users,
        probe=default_probe(timeout=config.probe_timeout),
    )
    machine = PermissionStateMachine(config.controlled_folders, applier=select_applier())
    app = PermissionsChecker(config, principal, machine)

    try:
        app.initialize()
        if args.command:
            app.process_command(args.command)
            return 0
        return app.run_interactive()

    except PermissionChangeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    finally:
        logger.close()


if __name__ == "__main__":
    sys.exit(main())
