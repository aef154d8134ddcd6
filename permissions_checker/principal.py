"""
Principal detection - who is running the checker and are they an admin.

The admin flag is computed once at startup from three signals, any of
which is sufficient:

1. the username is in the configured admin list (case-insensitive)
2. SUDO_USER is set (running under sudo)
3. the platform PrivilegeProbe succeeds

Any probe failure counts as "not admin".
"""

import getpass
import os
import subprocess
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from .errors import ProbeFailure
from .logger import get_logger

COMPONENT = "principal"

ADMIN_GROUP_MARKERS = ("wheel", "admin", "sudo", "root")


@dataclass(frozen=True)
class Principal:
    """The detected current user and their admin flag."""
    name: str
    is_admin: bool = False


class PrivilegeProbe:
    """Platform-specific check for elevated privileges.

    Subclasses implement run() and raise ProbeFailure when no definite
    answer can be obtained.
    """

    name = "base"

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds to wait for the external command (None waits
                indefinitely)
        """
        self.timeout = timeout

    def run(self) -> bool:
        raise NotImplementedError

    def _execute(self, args: List[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeFailure(self.name, f"timed out after {e.timeout}s") from e
        except OSError as e:
            raise ProbeFailure(self.name, str(e)) from e
        except ValueError as e:
            # Output not decodable in the locale encoding
            raise ProbeFailure(self.name, f"unreadable output: {e}") from e


class PosixGroupProbe(PrivilegeProbe):
    """Looks for admin-like groups in the output of `id`."""

    name = "posix-groups"

    def run(self) -> bool:
        result = self._execute(["id"])
        if result.returncode != 0:
            raise ProbeFailure(self.name, result.stderr.strip() or "id failed", result.returncode)

        output = result.stdout.strip().lower()
        if not output:
            raise ProbeFailure(self.name, "empty output")
        return any(marker in output for marker in ADMIN_GROUP_MARKERS)


class WindowsSessionProbe(PrivilegeProbe):
    """`net session` only succeeds from an elevated prompt."""

    name = "windows-session"

    def run(self) -> bool:
        return self._execute(["net", "session"]).returncode == 0


def default_probe(os_name: Optional[str] = None, timeout: Optional[float] = None) -> PrivilegeProbe:
    """Pick the privilege probe for the running platform."""
    if (os_name or os.name) == "nt":
        return WindowsSessionProbe(timeout=timeout)
    return PosixGroupProbe(timeout=timeout)


def detect_username(env: Optional[Mapping[str, str]] = None) -> str:
    """Current username from USER, USERNAME, then the password database."""
    env = os.environ if env is None else env

    for var in ("USER", "USERNAME"):
        user = env.get(var)
        if user:
            return user

    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = ""
    return user or "unknown"


def determine_admin(
    username: str,
    admin_users: Iterable[str],
    env: Optional[Mapping[str, str]] = None,
    probe: Optional[PrivilegeProbe] = None,
) -> bool:
    """Decide whether the user has admin rights. Fails closed."""
    logger = get_logger()
    env = os.environ if env is None else env

    admins = {user.strip().lower() for user in admin_users if user.strip()}
    if username.lower() in admins:
        logger.debug(COMPONENT, "admin_by_name", {"user": username})
        return True

    if env.get("SUDO_USER"):
        logger.debug(COMPONENT, "admin_by_sudo", {"sudo_user": env.get("SUDO_USER")})
        return True

    if probe is None:
        return False

    try:
        is_admin = probe.run()
    except ProbeFailure as e:
        logger.warn(COMPONENT, "probe_failed", {"probe": e.probe, "reason": e.reason})
        return False

    logger.debug(COMPONENT, "probe_result", {"probe": probe.name, "is_admin": is_admin})
    return is_admin


def detect_principal(
    admin_users: Iterable[str],
    env: Optional[Mapping[str, str]] = None,
    probe: Optional[PrivilegeProbe] = None,
) -> Principal:
    """Build the Principal for the current process.

    Args:
        admin_users: Usernames that are always admins
        env: Environment to read (default: os.environ)
        probe: Privilege probe (None skips the external check)

    Returns:
        Immutable Principal
    """
    name = detect_username(env)
    principal = Principal(name=name, is_admin=determine_admin(name, admin_users, env, probe))
    get_logger().info(COMPONENT, "principal_detected", {
        "user": principal.name,
        "is_admin": principal.is_admin,
    })
    return principal
