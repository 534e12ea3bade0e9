"""
Roster roles and the role resolver.
Every member lands in exactly one of five roles. Resolution is a pure lookup over
class, specialization, the externally assigned role and the layout configuration;
all inputs must already be cached by the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from role_layout.layout_config import LayoutConfig

# ---------- Role enum (exactly these 5) ----------


class Role(str, Enum):
    TANK = "tank"
    MELEE = "melee"
    HEALER = "healer"
    RANGED = "ranged"
    PET = "pet"


class ExternalRole(str, Enum):
    """Coarse role handed out by the group's role authority (raid leader / group finder)."""
    TANK = "TANK"
    HEALER = "HEALER"
    DAMAGER = "DAMAGER"
    NONE = "NONE"


class WowClass(str, Enum):
    DEATHKNIGHT = "DEATHKNIGHT"
    DEMONHUNTER = "DEMONHUNTER"
    DRUID = "DRUID"
    EVOKER = "EVOKER"
    HUNTER = "HUNTER"
    MAGE = "MAGE"
    MONK = "MONK"
    PALADIN = "PALADIN"
    PRIEST = "PRIEST"
    ROGUE = "ROGUE"
    SHAMAN = "SHAMAN"
    WARLOCK = "WARLOCK"
    WARRIOR = "WARRIOR"


# ---------- Role definitions (shown to users) ----------


@dataclass(frozen=True)
class RoleDefinition:
    name: str
    description: str


ROLE_DEFINITIONS: dict[Role, RoleDefinition] = {
    Role.TANK: RoleDefinition(name="Tank", description="Holds threat; assigned tank or tanking specialization."),
    Role.MELEE: RoleDefinition(name="Melee", description="Melee damage dealers, plus healers of classes flagged as melee healers."),
    Role.HEALER: RoleDefinition(name="Healer", description="Healing specializations or members assigned as healer."),
    Role.RANGED: RoleDefinition(name="Ranged", description="Ranged damage dealers; fallback when nothing else is known."),
    Role.PET: RoleDefinition(name="Pet", description="Player pets. Always grouped separately."),
}


def get_role_definition(role: Role) -> RoleDefinition:
    return ROLE_DEFINITIONS[role]


def list_all_roles() -> list[tuple[Role, RoleDefinition]]:
    """For API/frontend: list all roles with definitions."""
    return [(r, ROLE_DEFINITIONS[r]) for r in Role]


# ---------- Lookup tables ----------
# Default role per class in the absence of specialization data.

DEFAULT_ROLE_BY_CLASS: dict[WowClass, Role] = {
    WowClass.DEATHKNIGHT: Role.MELEE,
    WowClass.DEMONHUNTER: Role.MELEE,
    WowClass.DRUID: Role.RANGED,
    WowClass.EVOKER: Role.RANGED,
    WowClass.HUNTER: Role.RANGED,
    WowClass.MAGE: Role.RANGED,
    WowClass.MONK: Role.MELEE,
    WowClass.PALADIN: Role.MELEE,
    WowClass.PRIEST: Role.RANGED,
    WowClass.ROGUE: Role.MELEE,
    WowClass.SHAMAN: Role.RANGED,
    WowClass.WARLOCK: Role.RANGED,
    WowClass.WARRIOR: Role.MELEE,
}


@dataclass(frozen=True)
class SpecInfo:
    spec_id: int
    name: str
    unit_class: WowClass
    role: Role                   # detailed role (tank / melee / healer / ranged)
    external_role: ExternalRole  # coarse role the specialization implies


def _spec(spec_id: int, name: str, unit_class: WowClass, role: Role) -> SpecInfo:
    if role is Role.TANK:
        coarse = ExternalRole.TANK
    elif role is Role.HEALER:
        coarse = ExternalRole.HEALER
    else:
        coarse = ExternalRole.DAMAGER
    return SpecInfo(spec_id=spec_id, name=name, unit_class=unit_class, role=role, external_role=coarse)


SPECS: dict[int, SpecInfo] = {
    s.spec_id: s
    for s in (
        _spec(250, "Blood", WowClass.DEATHKNIGHT, Role.TANK),
        _spec(251, "Frost", WowClass.DEATHKNIGHT, Role.MELEE),
        _spec(252, "Unholy", WowClass.DEATHKNIGHT, Role.MELEE),
        _spec(577, "Havoc", WowClass.DEMONHUNTER, Role.MELEE),
        _spec(581, "Vengeance", WowClass.DEMONHUNTER, Role.TANK),
        _spec(102, "Balance", WowClass.DRUID, Role.RANGED),
        _spec(103, "Feral", WowClass.DRUID, Role.MELEE),
        _spec(104, "Guardian", WowClass.DRUID, Role.TANK),
        _spec(105, "Restoration", WowClass.DRUID, Role.HEALER),
        _spec(1467, "Devastation", WowClass.EVOKER, Role.RANGED),
        _spec(1468, "Preservation", WowClass.EVOKER, Role.HEALER),
        _spec(1473, "Augmentation", WowClass.EVOKER, Role.RANGED),
        _spec(253, "Beast Mastery", WowClass.HUNTER, Role.RANGED),
        _spec(254, "Marksmanship", WowClass.HUNTER, Role.RANGED),
        _spec(255, "Survival", WowClass.HUNTER, Role.MELEE),
        _spec(62, "Arcane", WowClass.MAGE, Role.RANGED),
        _spec(63, "Fire", WowClass.MAGE, Role.RANGED),
        _spec(64, "Frost", WowClass.MAGE, Role.RANGED),
        _spec(268, "Brewmaster", WowClass.MONK, Role.TANK),
        _spec(269, "Windwalker", WowClass.MONK, Role.MELEE),
        _spec(270, "Mistweaver", WowClass.MONK, Role.HEALER),
        _spec(65, "Holy", WowClass.PALADIN, Role.HEALER),
        _spec(66, "Protection", WowClass.PALADIN, Role.TANK),
        _spec(70, "Retribution", WowClass.PALADIN, Role.MELEE),
        _spec(256, "Discipline", WowClass.PRIEST, Role.HEALER),
        _spec(257, "Holy", WowClass.PRIEST, Role.HEALER),
        _spec(258, "Shadow", WowClass.PRIEST, Role.RANGED),
        _spec(259, "Assassination", WowClass.ROGUE, Role.MELEE),
        _spec(260, "Outlaw", WowClass.ROGUE, Role.MELEE),
        _spec(261, "Subtlety", WowClass.ROGUE, Role.MELEE),
        _spec(262, "Elemental", WowClass.SHAMAN, Role.RANGED),
        _spec(263, "Enhancement", WowClass.SHAMAN, Role.MELEE),
        _spec(264, "Restoration", WowClass.SHAMAN, Role.HEALER),
        _spec(265, "Affliction", WowClass.WARLOCK, Role.RANGED),
        _spec(266, "Demonology", WowClass.WARLOCK, Role.RANGED),
        _spec(267, "Destruction", WowClass.WARLOCK, Role.RANGED),
        _spec(71, "Arms", WowClass.WARRIOR, Role.MELEE),
        _spec(72, "Fury", WowClass.WARRIOR, Role.MELEE),
        _spec(73, "Protection", WowClass.WARRIOR, Role.TANK),
    )
}

# Authority roles that force a role; DAMAGER and NONE defer to the computed role.
ROLE_BY_EXTERNAL: dict[ExternalRole, Role | None] = {
    ExternalRole.TANK: Role.TANK,
    ExternalRole.HEALER: Role.HEALER,
    ExternalRole.DAMAGER: None,
    ExternalRole.NONE: None,
}


# ---------- Resolver input ----------


@dataclass(frozen=True)
class RoleInputs:
    """Everything the resolver looks at for one member. Cached by the caller."""
    unit_class: WowClass | None = None
    spec_id: int | None = None
    external_role: ExternalRole | None = None
    is_pet: bool = False


def spec_info(spec_id: int | None) -> SpecInfo | None:
    if spec_id is None:
        return None
    return SPECS.get(spec_id)


def role_for_spec(spec_id: int | None) -> Role | None:
    """Detailed role for a specialization; None for unknown or missing ids."""
    info = spec_info(spec_id)
    return info.role if info else None


def external_role_for_spec(spec_id: int | None) -> ExternalRole | None:
    info = spec_info(spec_id)
    return info.external_role if info else None


def default_role_for_class(unit_class: WowClass | None) -> Role:
    if unit_class is None:
        return Role.RANGED
    return DEFAULT_ROLE_BY_CLASS.get(unit_class, Role.RANGED)


def _apply_melee_healer(role: Role, unit_class: WowClass | None, config: LayoutConfig) -> Role:
    if role is Role.HEALER and unit_class is not None and unit_class in config.melee_healer_classes:
        return Role.MELEE
    return role


def _apply_authority(role: Role, external_role: ExternalRole | None, config: LayoutConfig) -> Role:
    if not config.prefer_external_role or external_role is None:
        return role
    forced = ROLE_BY_EXTERNAL.get(external_role)
    return forced if forced is not None else role


def resolve_role(inputs: RoleInputs, config: LayoutConfig) -> Role:
    """
    Map one member's cached inputs to exactly one Role.

    Precedence: pets are always Role.PET; otherwise specialization role, else class
    default (ranged when the class is unknown); healers of melee-healer classes become
    melee; and when prefer_external_role is on, an assigned TANK or HEALER wins.
    config.authority_overrides_melee_healer picks whether the authority is applied
    after (default) or before the melee-healer adjustment.
    """
    if inputs.is_pet:
        return Role.PET
    role = role_for_spec(inputs.spec_id) or default_role_for_class(inputs.unit_class)
    if config.authority_overrides_melee_healer:
        role = _apply_melee_healer(role, inputs.unit_class, config)
        role = _apply_authority(role, inputs.external_role, config)
    else:
        role = _apply_authority(role, inputs.external_role, config)
        role = _apply_melee_healer(role, inputs.unit_class, config)
    return role


# ---------- Parsing (never raises) ----------


def parse_role(value: str | None) -> Role | None:
    """Parse role string to enum; None if invalid or empty."""
    if not value:
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def parse_external_role(value: str | None) -> ExternalRole | None:
    if not value:
        return None
    try:
        return ExternalRole(value.strip().upper())
    except ValueError:
        return None


def parse_class(value: str | None) -> WowClass | None:
    """Parse a class token ("WARRIOR", "Death Knight", "death_knight") to enum."""
    if not value:
        return None
    token = value.strip().upper().replace(" ", "").replace("_", "")
    try:
        return WowClass(token)
    except ValueError:
        return None
