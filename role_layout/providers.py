"""
Collaborator interfaces consumed by the layout service, plus in-memory versions used by
the HTTP surface and the tests.

The roster provider owns membership and names; the inspection provider owns the
asynchronous specialization query. Neither is re-implemented here beyond simple
in-process bookkeeping.
"""
from __future__ import annotations

from typing import Iterator, Protocol, runtime_checkable

from role_layout.models import Member, PartyInfo, PartyState
from role_layout.roles import ExternalRole, WowClass

# ---------- Exceptions ----------


class UnknownMemberError(KeyError):
    """No roster member with this guid."""


# ---------- Interfaces ----------


@runtime_checkable
class RosterProvider(Protocol):
    """Membership, names and party facts, plus the mutations the layout service drives."""

    def __contains__(self, guid: object) -> bool: ...

    def iter_members(self) -> Iterator[Member]: ...

    def get(self, guid: str) -> Member | None: ...

    def guid_by_name(self, name: str) -> str | None: ...

    def name_by_guid(self, guid: str) -> str | None: ...

    def is_reachable(self, guid: str) -> bool: ...

    def party_info(self) -> PartyInfo: ...

    def set_party(self, state: PartyState, group_size: int, in_instance: bool) -> None: ...

    def join(self, member: Member) -> Member: ...

    def update(
        self,
        guid: str,
        *,
        name: str | None = None,
        unit_class: WowClass | None = None,
        external_role: ExternalRole | None = None,
        connected: bool | None = None,
    ) -> Member:
        """Raises UnknownMemberError for an unknown guid."""
        ...

    def leave(self, guid: str) -> Member:
        """Raises UnknownMemberError for an unknown guid."""
        ...


@runtime_checkable
class InspectionProvider(Protocol):
    def request_inspection(self, guid: str) -> None:
        """Fire-and-forget; the result comes back later as a separate event."""
        ...


# ---------- In-memory roster ----------


class InMemoryRoster:
    """Roster kept in process; join / update / leave mutate it."""

    def __init__(self) -> None:
        self._members: dict[str, Member] = {}
        self._party = PartyInfo()

    def iter_members(self) -> Iterator[Member]:
        return iter(list(self._members.values()))

    def get(self, guid: str) -> Member | None:
        return self._members.get(guid)

    def __contains__(self, guid: object) -> bool:
        return guid in self._members

    def __len__(self) -> int:
        return len(self._members)

    def guid_by_name(self, name: str) -> str | None:
        for member in self._members.values():
            if member.name == name and not member.is_pet:
                return member.guid
        return None

    def name_by_guid(self, guid: str) -> str | None:
        member = self._members.get(guid)
        return member.name if member else None

    def is_reachable(self, guid: str) -> bool:
        member = self._members.get(guid)
        return member is not None and member.connected

    def party_info(self) -> PartyInfo:
        return self._party

    def set_party(self, state: PartyState, group_size: int, in_instance: bool) -> None:
        self._party = PartyInfo(state=state, group_size=group_size, in_instance=in_instance)

    def join(self, member: Member) -> Member:
        self._members[member.guid] = member
        return member

    def update(
        self,
        guid: str,
        *,
        name: str | None = None,
        unit_class: WowClass | None = None,
        external_role: ExternalRole | None = None,
        connected: bool | None = None,
    ) -> Member:
        member = self._members.get(guid)
        if member is None:
            raise UnknownMemberError(guid)
        if name is not None:
            member.name = name
        # Class is fixed once known.
        if unit_class is not None and member.unit_class is None:
            member.unit_class = unit_class
        if external_role is not None:
            member.external_role = external_role
        if connected is not None:
            member.connected = connected
        return member

    def leave(self, guid: str) -> Member:
        member = self._members.pop(guid, None)
        if member is None:
            raise UnknownMemberError(guid)
        return member

    def clear(self) -> None:
        self._members.clear()


# ---------- Outbox inspection provider ----------


class OutboxInspectionProvider:
    """
    Collects inspection requests for an external inspector to pick up.
    Repeated requests for the same guid are counted, not duplicated.
    """

    def __init__(self) -> None:
        self._outbox: dict[str, int] = {}

    def request_inspection(self, guid: str) -> None:
        self._outbox[guid] = self._outbox.get(guid, 0) + 1

    def peek(self) -> dict[str, int]:
        return dict(self._outbox)

    def drain(self) -> list[str]:
        guids = list(self._outbox)
        self._outbox.clear()
        return guids
