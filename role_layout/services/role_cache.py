"""
Role cache: last-known resolved role and last-known authority role per member.
Both are diffed independently so the resolver only runs when an input actually moved.
"""
from __future__ import annotations

from typing import Callable

from role_layout.roles import ExternalRole, Role


class RoleCache:
    def __init__(self) -> None:
        self._role_by_guid: dict[str, Role] = {}
        self._external_by_guid: dict[str, ExternalRole | None] = {}

    def get_role(self, guid: str) -> Role | None:
        return self._role_by_guid.get(guid)

    def get_or_compute(self, guid: str, compute: Callable[[str], Role]) -> Role:
        """Return the cached role, computing and memoising it on first access."""
        role = self._role_by_guid.get(guid)
        if role is None:
            role = compute(guid)
            self._role_by_guid[guid] = role
        return role

    def update_role(self, guid: str, new_role: Role) -> bool:
        """Store new_role; True if it differs from the stored role (or none was stored)."""
        if self._role_by_guid.get(guid) is new_role:
            return False
        self._role_by_guid[guid] = new_role
        return True

    def get_external_role(self, guid: str) -> ExternalRole | None:
        return self._external_by_guid.get(guid)

    def update_external_role(self, guid: str, role: ExternalRole | None) -> bool:
        if guid in self._external_by_guid and self._external_by_guid[guid] is role:
            return False
        self._external_by_guid[guid] = role
        return True

    def forget(self, guid: str) -> None:
        self._role_by_guid.pop(guid, None)
        self._external_by_guid.pop(guid, None)

    def clear(self) -> None:
        self._role_by_guid.clear()
        self._external_by_guid.clear()

    def __contains__(self, guid: object) -> bool:
        return guid in self._role_by_guid

    def __len__(self) -> int:
        return len(self._role_by_guid)
