"""
Layout configuration tests: unknown roles, classes and slots are dropped, never raised.
"""
from __future__ import annotations

from role_layout.layout_config import DEFAULT_GROUP_ROLES, LayoutConfig
from role_layout.roles import Role, WowClass


def test_defaults():
    config = LayoutConfig()
    assert config.group_roles == DEFAULT_GROUP_ROLES
    assert config.melee_healer_classes == frozenset()
    assert config.prefer_external_role is False
    assert config.authority_overrides_melee_healer is True
    assert config.pet_group is True
    assert config.spec_implied_external_role is False


def test_group_roles_accept_strings_and_keep_defaults_for_missing_slots():
    config = LayoutConfig(group_roles={"1": "healer", "3": "tank"})
    assert config.group_roles == {1: Role.HEALER, 2: Role.MELEE, 3: Role.TANK, 4: Role.RANGED}


def test_unknown_roles_and_slots_are_ignored():
    config = LayoutConfig(group_roles={"1": "bard", "7": "tank", "x": "melee", "2": "pet"})
    assert config.group_roles == DEFAULT_GROUP_ROLES


def test_unknown_classes_are_ignored():
    config = LayoutConfig(melee_healer_classes=["PALADIN", "monk", "BARD", ""])
    assert config.melee_healer_classes == frozenset({WowClass.PALADIN, WowClass.MONK})


def test_non_dict_group_roles_fall_back_to_defaults():
    config = LayoutConfig(group_roles=None)
    assert config.group_roles == DEFAULT_GROUP_ROLES


def test_to_dict():
    config = LayoutConfig(melee_healer_classes=["MONK"], prefer_external_role=True)
    d = config.to_dict()
    assert d["group_roles"] == {"1": "tank", "2": "melee", "3": "healer", "4": "ranged"}
    assert d["melee_healer_classes"] == ["MONK"]
    assert d["prefer_external_role"] is True
    assert d["spec_implied_external_role"] is False
