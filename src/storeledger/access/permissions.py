"""Role-based permission checks.

The ledger asks a ``PermissionChecker`` whether a role may perform an action
on a subject. ``RolePermissionMatrix`` is the default: a static table keyed by
role, where tenant-wide roles may do everything.
"""

from enum import Enum
from typing import Protocol

from storeledger.staff.member import MemberRole


class Action(Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    MANAGE = "manage"


class PermissionChecker(Protocol):
    def can(self, role: str, action: str, subject: str) -> bool: ...


_ALL = frozenset(a.value for a in Action)

DEFAULT_MATRIX = {
    MemberRole.OWNER.value: _ALL,
    MemberRole.SUPER_ADMIN.value: _ALL,
    MemberRole.ADMIN.value: frozenset({Action.READ.value, Action.WRITE.value, Action.DELETE.value}),
    MemberRole.MANAGER.value: frozenset({Action.READ.value, Action.WRITE.value}),
    MemberRole.STAFF.value: frozenset({Action.READ.value}),
}


class RolePermissionMatrix:
    """Grants by role alone; ``subject`` narrows nothing unless ``overrides`` says so.

    ``overrides`` maps ``(role, subject)`` to the set of allowed actions for
    that subject, replacing the role's default set.
    """

    def __init__(self, matrix=None, overrides=None):
        self.matrix = dict(DEFAULT_MATRIX if matrix is None else matrix)
        self.overrides = dict(overrides or {})

    def can(self, role, action, subject) -> bool:
        role = role.value if isinstance(role, Enum) else role
        action = action.value if isinstance(action, Enum) else action
        allowed = self.overrides.get((role, subject))
        if allowed is None:
            allowed = self.matrix.get(role, frozenset())
        return action in allowed
