"""
Membership index: per-role member sets and their alphabetically ordered name lists.

Names are kept sorted with rightmost binary insertion (bisect.insort_right), so equal
names stay stable and each insert costs O(log n) comparisons plus an O(n) shift.
When a display name changes, or the whole roster is resynced, buckets are rebuilt
from the member sets instead of being diffed.
"""
from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Mapping

from role_layout.roles import Role


@dataclass
class RoleBucket:
    role: Role
    guids: set[str] = field(default_factory=set)
    names: list[str] = field(default_factory=list)

    def insert_name(self, name: str) -> None:
        bisect.insort_right(self.names, name)

    def remove_name(self, name: str) -> bool:
        i = bisect.bisect_left(self.names, name)
        if i < len(self.names) and self.names[i] == name:
            del self.names[i]
            return True
        return False

    def name_list(self) -> str:
        return ",".join(self.names)


class MembershipIndex:
    def __init__(self) -> None:
        self._buckets: dict[Role, RoleBucket] = {role: RoleBucket(role) for role in Role}
        # Name each guid was bucketed under, so removal erases the right entry.
        self._name_by_guid: dict[str, str] = {}
        self._role_by_guid: dict[str, Role] = {}

    def bucket(self, role: Role) -> RoleBucket:
        return self._buckets[role]

    def role_of(self, guid: str) -> Role | None:
        return self._role_by_guid.get(guid)

    def guids(self) -> set[str]:
        return set(self._role_by_guid)

    def members(self, role: Role) -> frozenset[str]:
        return frozenset(self._buckets[role].guids)

    def names(self, role: Role) -> list[str]:
        return list(self._buckets[role].names)

    def name_list(self, role: Role) -> str:
        """Comma-joined sorted names; empty string for an empty bucket."""
        return self._buckets[role].name_list()

    def rebucket(self, guid: str, name: str, old_role: Role | None, new_role: Role) -> None:
        """Move guid from old_role's bucket (if there) into new_role's bucket."""
        if old_role is not None:
            self._discard(guid, old_role)
        current = self._role_by_guid.get(guid)
        if current is not None:
            self._discard(guid, current)
        bucket = self._buckets[new_role]
        bucket.guids.add(guid)
        bucket.insert_name(name)
        self._name_by_guid[guid] = name
        self._role_by_guid[guid] = new_role

    def remove(self, guid: str, role: Role | None = None) -> None:
        role = role if role is not None else self._role_by_guid.get(guid)
        if role is not None:
            self._discard(guid, role)

    def rebuild(self, names_by_guid: Mapping[str, str], role_by_guid: Mapping[str, Role]) -> None:
        """Rebuild every bucket from scratch for the given members."""
        self.clear()
        for guid, role in role_by_guid.items():
            name = names_by_guid.get(guid)
            if name is None:
                continue
            bucket = self._buckets[role]
            bucket.guids.add(guid)
            bucket.names.append(name)
            self._name_by_guid[guid] = name
            self._role_by_guid[guid] = role
        for bucket in self._buckets.values():
            bucket.names.sort()

    def clear(self) -> None:
        for bucket in self._buckets.values():
            bucket.guids.clear()
            bucket.names.clear()
        self._name_by_guid.clear()
        self._role_by_guid.clear()

    def _discard(self, guid: str, role: Role) -> None:
        bucket = self._buckets[role]
        if guid not in bucket.guids:
            return
        bucket.guids.discard(guid)
        name = self._name_by_guid.pop(guid, None)
        if name is not None:
            bucket.remove_name(name)
        self._role_by_guid.pop(guid, None)
