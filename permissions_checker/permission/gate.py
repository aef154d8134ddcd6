"""
Access Gate - decides whether a principal may request an action.
"""

from enum import Enum

from ..principal import Principal


class Action(Enum):
    """Actions a caller can request from the command layer."""
    LOCK = "lock"
    UNLOCK = "unlock"
    STATUS = "status"

    @property
    def requires_admin(self) -> bool:
        return self in (Action.LOCK, Action.UNLOCK)


class AccessGate:
    """Stateless admin gate in front of every permission transition.

    Example:
        gate = AccessGate()
        gate.authorize(Principal("alice", is_admin=False), Action.UNLOCK)  # False
        gate.authorize(Principal("alice", is_admin=False), Action.STATUS)  # True
    """

    def authorize(self, principal: Principal, action: Action) -> bool:
        """Return True if the principal may perform the action."""
        if not action.requires_admin:
            return True
        return principal.is_admin
