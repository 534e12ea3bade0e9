"""
Layout projector: turns role buckets into the layout descriptors the layout engine
reads, and reports whether anything visible changed so redundant reloads are skipped.
"""
from __future__ import annotations

import math

from role_layout.core.config import settings
from role_layout.layout_config import GROUP_SLOTS, PET_GROUP_SLOT, LayoutConfig
from role_layout.models import MAX_UNITS, LayoutDescriptor, LayoutGroup, PartyInfo
from role_layout.roles import Role
from role_layout.services.membership_index import MembershipIndex

LAYOUT_BY_ROLE = "By Role"
LAYOUT_BY_ROLE_WITH_PETS = "By Role w/Pets"


def active_players(party: PartyInfo, global_cap: int | None = None) -> int:
    """Lesser of the instance cap and group size inside instances; global cap outside."""
    cap = global_cap if global_cap is not None else settings.GLOBAL_RAID_CAP
    if not party.in_instance:
        return cap
    instance_cap = MAX_UNITS.get(party.state, cap)
    return max(1, min(instance_cap, party.group_size))


def max_columns(party: PartyInfo, units_per_column: int, global_cap: int | None = None) -> int:
    return math.ceil(active_players(party, global_cap) / units_per_column)


class LayoutProjector:
    def __init__(self, units_per_column: int | None = None, global_cap: int | None = None) -> None:
        self.units_per_column = units_per_column if units_per_column is not None else settings.UNITS_PER_COLUMN
        self.global_cap = global_cap if global_cap is not None else settings.GLOBAL_RAID_CAP
        self._layouts: dict[str, LayoutDescriptor] = {}

    @property
    def layouts(self) -> dict[str, LayoutDescriptor]:
        return self._layouts

    def get(self, name: str) -> LayoutDescriptor | None:
        return self._layouts.get(name)

    def project(self, index: MembershipIndex, config: LayoutConfig, party: PartyInfo) -> bool:
        """Recompute every layout; True iff a name list, default or group set changed."""
        changed = self._sync_registered(config)
        columns = max_columns(party, self.units_per_column, self.global_cap)
        for layout in self._layouts.values():
            defaults = layout.defaults
            if defaults.units_per_column != self.units_per_column:
                defaults.units_per_column = self.units_per_column
                changed = True
            if defaults.max_columns != columns:
                defaults.max_columns = columns
                changed = True
            for group in layout.groups:
                role = Role.PET if group.is_pet_group else config.role_for_slot(group.slot)
                if role is None:
                    continue
                name_list = index.name_list(role)
                if group.role is not role or group.name_list != name_list:
                    group.role = role
                    group.name_list = name_list
                    changed = True
        return changed

    def _sync_registered(self, config: LayoutConfig) -> bool:
        """Register or drop layouts to match the configuration."""
        changed = False
        if LAYOUT_BY_ROLE not in self._layouts:
            self._layouts[LAYOUT_BY_ROLE] = _new_layout(LAYOUT_BY_ROLE, config, with_pets=False)
            changed = True
        if config.pet_group and LAYOUT_BY_ROLE_WITH_PETS not in self._layouts:
            self._layouts[LAYOUT_BY_ROLE_WITH_PETS] = _new_layout(LAYOUT_BY_ROLE_WITH_PETS, config, with_pets=True)
            changed = True
        elif not config.pet_group and LAYOUT_BY_ROLE_WITH_PETS in self._layouts:
            del self._layouts[LAYOUT_BY_ROLE_WITH_PETS]
            changed = True
        return changed


def _new_layout(name: str, config: LayoutConfig, with_pets: bool) -> LayoutDescriptor:
    groups = [LayoutGroup(slot=slot, role=config.group_roles[slot]) for slot in GROUP_SLOTS]
    if with_pets:
        groups.append(LayoutGroup(slot=PET_GROUP_SLOT, role=Role.PET, is_pet_group=True))
    return LayoutDescriptor(name=name, groups=groups)
