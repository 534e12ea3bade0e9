"""
User-editable layout configuration (the configuration store's view of this module).
Read-only for the core except for write-back on user edits, which triggers a full
recompute. Values that name unknown roles, classes or slots are dropped, never raised.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from role_layout.roles import Role, WowClass, parse_class, parse_role

# Slots 1..4 hold the player roles; slot 5 is reserved for the pet group.
GROUP_SLOTS = (1, 2, 3, 4)
PET_GROUP_SLOT = 5

DEFAULT_GROUP_ROLES: dict[int, Role] = {
    1: Role.TANK,
    2: Role.MELEE,
    3: Role.HEALER,
    4: Role.RANGED,
}


class LayoutConfig(BaseModel):
    group_roles: dict[int, Role] = Field(default_factory=lambda: dict(DEFAULT_GROUP_ROLES))
    melee_healer_classes: frozenset[WowClass] = Field(default_factory=frozenset)
    prefer_external_role: bool = False
    # True: authority override is applied after the melee-healer adjustment.
    authority_overrides_melee_healer: bool = True
    # Treat the coarse role a specialization implies as the external role when the
    # authority has assigned nothing.
    spec_implied_external_role: bool = False
    pet_group: bool = True

    @field_validator("group_roles", mode="before")
    @classmethod
    def _drop_unknown_group_roles(cls, value: Any) -> dict[int, Role]:
        out = dict(DEFAULT_GROUP_ROLES)
        if not isinstance(value, dict):
            return out
        for slot, role in value.items():
            try:
                slot_num = int(slot)
            except (TypeError, ValueError):
                continue
            if slot_num not in GROUP_SLOTS:
                continue
            parsed = role if isinstance(role, Role) else parse_role(str(role) if role is not None else None)
            if parsed is None or parsed is Role.PET:
                continue
            out[slot_num] = parsed
        return out

    @field_validator("melee_healer_classes", mode="before")
    @classmethod
    def _drop_unknown_classes(cls, value: Any) -> frozenset[WowClass]:
        if value is None or isinstance(value, str):
            value = [value] if value else []
        parsed = set()
        for item in value:
            c = item if isinstance(item, WowClass) else parse_class(str(item))
            if c is not None:
                parsed.add(c)
        return frozenset(parsed)

    def role_for_slot(self, slot: int) -> Role | None:
        return self.group_roles.get(slot)

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_roles": {str(k): v.value for k, v in sorted(self.group_roles.items())},
            "melee_healer_classes": sorted(c.value for c in self.melee_healer_classes),
            "prefer_external_role": self.prefer_external_role,
            "authority_overrides_melee_healer": self.authority_overrides_melee_healer,
            "spec_implied_external_role": self.spec_implied_external_role,
            "pet_group": self.pet_group,
        }
