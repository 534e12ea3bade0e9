"""
Data models for the role layout service.
Domain objects only; no event handling or API logic.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from role_layout.roles import ExternalRole, Role, RoleInputs, WowClass


# ---------- Party state ----------
class PartyState(str, Enum):
    """Kind of group the player is in; decides how many units can be shown."""
    SOLO = "solo"
    PARTY = "party"
    ARENA = "arena"
    BG = "bg"
    RAID_10 = "raid_10"
    RAID_25 = "raid_25"
    RAID_40 = "raid_40"
    RAID_FLEX = "raid_flex"


# Maximum number of units per party state.
MAX_UNITS: dict[PartyState, int] = {
    PartyState.ARENA: 5,
    PartyState.BG: 40,
    PartyState.PARTY: 5,
    PartyState.RAID_10: 10,
    PartyState.RAID_25: 25,
    PartyState.RAID_40: 40,
    PartyState.RAID_FLEX: 30,
    PartyState.SOLO: 1,
}


@dataclass
class PartyInfo:
    """Live group facts reported by the roster provider."""
    state: PartyState = PartyState.SOLO
    group_size: int = 1
    in_instance: bool = False


# ---------- Inspection state ----------
class InspectState(str, Enum):
    """unknown → pending → resolved; resolved → pending when specialization changes."""
    UNKNOWN = "unknown"
    PENDING = "pending"
    RESOLVED = "resolved"


# ---------- Member ----------
@dataclass
class Member:
    """
    One roster member. Attributes arrive opportunistically; class is fixed once known.
    The resolved role is not stored here: the role cache owns it.
    """
    guid: str
    name: str
    unit_class: WowClass | None = None
    spec_id: int | None = None
    external_role: ExternalRole | None = None
    is_pet: bool = False
    connected: bool = True

    def role_inputs(self, fallback_external: ExternalRole | None = None) -> RoleInputs:
        return RoleInputs(
            unit_class=self.unit_class,
            spec_id=self.spec_id,
            external_role=self.external_role if self.external_role is not None else fallback_external,
            is_pet=self.is_pet,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "guid": self.guid,
            "name": self.name,
            "class": self.unit_class.value if self.unit_class else None,
            "spec_id": self.spec_id,
            "external_role": self.external_role.value if self.external_role else None,
            "is_pet": self.is_pet,
            "connected": self.connected,
        }


# ---------- Layout descriptor (consumed by the layout engine) ----------
@dataclass
class LayoutGroup:
    slot: int
    role: Role
    name_list: str = ""
    is_pet_group: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"slot": self.slot, "role": self.role.value, "nameList": self.name_list}
        if self.is_pet_group:
            d["isPetGroup"] = True
        return d


@dataclass
class LayoutDefaults:
    units_per_column: int | None = None
    max_columns: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"unitsPerColumn": self.units_per_column, "maxColumns": self.max_columns}


@dataclass
class LayoutDescriptor:
    """A named layout: ordered groups plus shared display defaults."""
    name: str
    defaults: LayoutDefaults = field(default_factory=LayoutDefaults)
    groups: list[LayoutGroup] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "defaults": self.defaults.to_dict(),
            "groups": [g.to_dict() for g in self.groups],
        }
