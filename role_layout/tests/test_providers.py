"""
Collaborator tests: the in-memory roster satisfies the roster interface the service is
typed against, and the outbox inspector counts repeated requests.
"""
from __future__ import annotations

import pytest

from role_layout.models import Member, PartyState
from role_layout.providers import (
    InMemoryRoster,
    InspectionProvider,
    OutboxInspectionProvider,
    RosterProvider,
    UnknownMemberError,
)
from role_layout.roles import WowClass


def test_in_memory_implementations_satisfy_interfaces():
    assert isinstance(InMemoryRoster(), RosterProvider)
    assert isinstance(OutboxInspectionProvider(), InspectionProvider)


def test_class_is_fixed_once_known():
    roster = InMemoryRoster()
    roster.join(Member(guid="g1", name="Brakka"))
    roster.update("g1", unit_class=WowClass.WARRIOR)
    roster.update("g1", unit_class=WowClass.MAGE)
    assert roster.get("g1").unit_class == WowClass.WARRIOR


def test_unknown_guid_raises_on_update_and_leave():
    roster = InMemoryRoster()
    with pytest.raises(UnknownMemberError):
        roster.update("ghost", name="Nobody")
    with pytest.raises(UnknownMemberError):
        roster.leave("ghost")


def test_guid_by_name_skips_pets():
    roster = InMemoryRoster()
    roster.join(Member(guid="p1", name="Wolf", is_pet=True))
    assert roster.guid_by_name("Wolf") is None
    roster.join(Member(guid="g1", name="Wolf"))
    assert roster.guid_by_name("Wolf") == "g1"


def test_reachable_requires_presence_and_connection():
    roster = InMemoryRoster()
    roster.join(Member(guid="g1", name="Brakka", connected=False))
    assert roster.is_reachable("g1") is False
    roster.update("g1", connected=True)
    assert roster.is_reachable("g1") is True
    assert roster.is_reachable("ghost") is False


def test_party_info_reflects_set_party():
    roster = InMemoryRoster()
    roster.set_party(PartyState.RAID_25, 18, True)
    info = roster.party_info()
    assert (info.state, info.group_size, info.in_instance) == (PartyState.RAID_25, 18, True)


def test_outbox_counts_and_drains():
    outbox = OutboxInspectionProvider()
    outbox.request_inspection("g1")
    outbox.request_inspection("g1")
    outbox.request_inspection("g2")
    assert outbox.peek() == {"g1": 2, "g2": 1}
    assert outbox.drain() == ["g1", "g2"]
    assert outbox.peek() == {}
