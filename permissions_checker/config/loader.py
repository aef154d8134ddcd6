"""
Configuration Loader - build the AppConfig from defaults, file and environment.

Configuration precedence (low → high):
1. Built-in defaults
2. permissions-checker.yaml (flat mapping of dotted keys)
3. Environment variables (PERMISSIONS_CHECKER_*)
4. Command-line flags (applied by the caller)

Example file:
    controlled.folders: ./controlled_folder1,./controlled_folder2,./data
    admin.users: [root, admin, administrator]
    verbose.logging: false
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..errors import ConfigLoadError, ConfigSaveError
from ..logger import get_logger

COMPONENT = "config"

CONFIG_FILE = "permissions-checker.yaml"

DEFAULT_FOLDERS = ["./controlled_folder1", "./controlled_folder2", "./data"]
DEFAULT_ADMIN_USERS = ["root", "admin", "administrator"]

_TRUE_STRINGS = ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """Parsed Permissions Checker configuration.

    Attributes:
        app_name: Display name
        app_version: Display version
        controlled_folders: Folders whose write access is toggled
        admin_users: Usernames that always have admin rights
        verbose_logging: Echo structured log entries to stderr at DEBUG
        log_level: Minimum structured log level
        log_directory: Directory for the JSON-lines log (None disables it)
        probe_timeout: Seconds allowed for the privilege probe (None waits)
        extra: Unrecognized keys, kept so a save does not drop them
    """
    app_name: str = "Permissions Checker"
    app_version: str = "1.0.0"
    controlled_folders: List[str] = field(default_factory=lambda: list(DEFAULT_FOLDERS))
    admin_users: List[str] = field(default_factory=lambda: list(DEFAULT_ADMIN_USERS))
    verbose_logging: bool = False
    log_level: str = "INFO"
    log_directory: Optional[str] = None
    probe_timeout: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def get_property(self, key: str, default: Any = None) -> Any:
        """Look up a value by its dotted file key."""
        attr = _KEY_TO_FIELD.get(key)
        if attr is not None:
            value = getattr(self, attr)
            return default if value is None else value
        return self.extra.get(key, default)

    def set_property(self, key: str, value: Any) -> None:
        """Set a value by its dotted file key, coercing known keys."""
        attr = _KEY_TO_FIELD.get(key)
        if attr is None:
            self.extra[key] = value
            return
        if value is None and attr not in _NULLABLE_FIELDS:
            return
        setattr(self, attr, _FIELD_PARSERS[attr](value))

    def add_admin_user(self, username: str) -> None:
        name = username.strip().lower()
        if name and name not in self.admin_users:
            self.admin_users.append(name)

    def remove_admin_user(self, username: str) -> None:
        name = username.strip().lower()
        self.admin_users = [user for user in self.admin_users if user.lower() != name]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the flat dotted-key mapping written to disk."""
        data: Dict[str, Any] = {
            "app.name": self.app_name,
            "app.version": self.app_version,
            "controlled.folders": ",".join(self.controlled_folders),
            "admin.users": ",".join(self.admin_users),
            "verbose.logging": self.verbose_logging,
            "log.level": self.log_level,
        }
        if self.log_directory:
            data["log.directory"] = self.log_directory
        if self.probe_timeout is not None:
            data["probe.timeout"] = self.probe_timeout
        data.update(self.extra)
        return data


def _parse_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value]
    return [item.strip() for item in items if item.strip()]


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_STRINGS


def _parse_optional_str(value: Any) -> Optional[str]:
    if value is None or str(value).strip() == "":
        return None
    return str(value)


def _parse_optional_float(value: Any) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    return float(value)


_KEY_TO_FIELD = {
    "app.name": "app_name",
    "app.version": "app_version",
    "controlled.folders": "controlled_folders",
    "admin.users": "admin_users",
    "verbose.logging": "verbose_logging",
    "log.level": "log_level",
    "log.directory": "log_directory",
    "probe.timeout": "probe_timeout",
}

_FIELD_PARSERS = {
    "app_name": str,
    "app_version": str,
    "controlled_folders": _parse_list,
    "admin_users": _parse_list,
    "verbose_logging": _parse_bool,
    "log_level": str,
    "log_directory": _parse_optional_str,
    "probe_timeout": _parse_optional_float,
}

_NULLABLE_FIELDS = {"log_directory", "probe_timeout"}

_ENV_MAPPINGS = {
    "PERMISSIONS_CHECKER_FOLDERS": "controlled.folders",
    "PERMISSIONS_CHECKER_ADMIN_USERS": "admin.users",
    "PERMISSIONS_CHECKER_VERBOSE": "verbose.logging",
    "PERMISSIONS_CHECKER_LOG_LEVEL": "log.level",
    "PERMISSIONS_CHECKER_LOG_DIR": "log.directory",
}


class ConfigLoader:
    """Load and save the Permissions Checker configuration.

    Example:
        loader = ConfigLoader("permissions-checker.yaml")
        config = loader.load()
        print(config.controlled_folders)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        """
        Args:
            config_path: Config file (default: permissions-checker.yaml in cwd)
            env: Environment to read overrides from (default: os.environ)
        """
        self.config_path = Path(config_path) if config_path else Path.cwd() / CONFIG_FILE
        self.env = os.environ if env is None else env

    def load(self) -> AppConfig:
        """Load defaults, then the file, then environment overrides.

        An unreadable or malformed file is reported and ignored.
        """
        config = AppConfig()

        try:
            file_values = self._load_file()
        except ConfigLoadError as e:
            get_logger().warn(COMPONENT, "config_load_failed", {
                "path": str(self.config_path),
                "error": str(e),
            })
            file_values = {}

        self._apply(config, file_values, source="file")
        self._apply(config, self._env_values(), source="env")
        return config

    def save(self, config: AppConfig) -> bool:
        """Write the config to disk. Returns False (and logs) on failure."""
        try:
            self._save_file(config)
        except ConfigSaveError as e:
            get_logger().warn(COMPONENT, "config_save_failed", {
                "path": str(self.config_path),
                "error": str(e),
            })
            return False

        get_logger().info(COMPONENT, "config_saved", {"path": str(self.config_path)})
        return True

    def _load_file(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigLoadError(f"Could not load configuration file: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Configuration file must contain a mapping, got {type(data).__name__}"
            )
        return {str(key): value for key, value in data.items()}

    def _save_file(self, config: AppConfig) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(f"# {config.app_name} Configuration\n")
                yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigSaveError(f"Could not save configuration file: {e}") from e

    def _env_values(self) -> Dict[str, Any]:
        return {
            key: self.env[env_var]
            for env_var, key in _ENV_MAPPINGS.items()
            if self.env.get(env_var) is not None
        }

    def _apply(self, config: AppConfig, values: Dict[str, Any], source: str) -> None:
        for key, value in values.items():
            try:
                config.set_property(key, value)
            except (TypeError, ValueError) as e:
                get_logger().warn(COMPONENT, "config_value_invalid", {
                    "key": key,
                    "source": source,
                    "error": str(e),
                })


def load_config(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Convenience function to load configuration."""
    return ConfigLoader(config_path=config_path, env=env).load()
