"""
Role-based access control: the policy table and its enforcement hook.
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Optional

from .errors import PermissionDeniedError
from .schemas import ActionClass, Role

MUTATING_ACTIONS: FrozenSet[ActionClass] = frozenset(
    {
        ActionClass.create,
        ActionClass.update,
        ActionClass.delete,
        ActionClass.reassign,
    }
)

# Single source of truth for what each role may do.
POLICY: Dict[Role, FrozenSet[ActionClass]] = {
    Role.full_access: frozenset(ActionClass),
    Role.read_only: frozenset({ActionClass.read}),
    Role.external_consultant: frozenset({ActionClass.read}),
}

# Only delete is gated unless enforce_all_mutations is switched on.
DEFAULT_ENFORCED: FrozenSet[ActionClass] = frozenset({ActionClass.delete})


def authorize(role: Role, action: ActionClass) -> bool:
    """Return whether ``role`` may perform ``action``."""
    try:
        allowed = POLICY[Role(role)]
    except (KeyError, ValueError) as error:
        raise ValueError(f"Unknown role: {role}") from error
    return ActionClass(action) in allowed


class AccessControl:
    """Decides which action classes are checked against the policy table."""

    def __init__(
        self,
        enforced: Optional[Iterable[ActionClass]] = None,
        *,
        enforce_all_mutations: bool = False,
    ) -> None:
        if enforce_all_mutations:
            self.enforced = MUTATING_ACTIONS
        elif enforced is not None:
            self.enforced = frozenset(enforced)
        else:
            self.enforced = DEFAULT_ENFORCED

    def is_enforced(self, action: ActionClass) -> bool:
        return action in self.enforced

    def authorize(self, role: Role, action: ActionClass) -> bool:
        return authorize(role, action)

    def require(self, role: Role, action: ActionClass) -> None:
        if self.is_enforced(action) and not authorize(role, action):
            raise PermissionDeniedError(
                f"Role {Role(role).value} may not perform {ActionClass(action).value}"
            )
