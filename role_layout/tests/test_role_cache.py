"""
Role cache tests: change detection for resolved and external roles.
"""
from __future__ import annotations

from role_layout.roles import ExternalRole, Role
from role_layout.services.role_cache import RoleCache


def test_update_role_is_idempotent():
    cache = RoleCache()
    assert cache.update_role("g1", Role.MELEE) is True
    assert cache.update_role("g1", Role.MELEE) is False
    assert cache.update_role("g1", Role.TANK) is True
    assert cache.get_role("g1") == Role.TANK


def test_external_role_tracked_separately():
    cache = RoleCache()
    cache.update_role("g1", Role.RANGED)
    assert cache.update_external_role("g1", ExternalRole.HEALER) is True
    assert cache.update_external_role("g1", ExternalRole.HEALER) is False
    assert cache.get_role("g1") == Role.RANGED
    assert cache.get_external_role("g1") == ExternalRole.HEALER


def test_get_or_compute_memoises():
    cache = RoleCache()
    calls: list[str] = []

    def compute(guid: str) -> Role:
        calls.append(guid)
        return Role.HEALER

    assert cache.get_or_compute("g1", compute) == Role.HEALER
    assert cache.get_or_compute("g1", compute) == Role.HEALER
    assert calls == ["g1"]


def test_forget():
    cache = RoleCache()
    cache.update_role("g1", Role.TANK)
    cache.update_external_role("g1", ExternalRole.TANK)
    cache.forget("g1")
    assert "g1" not in cache
    assert cache.get_role("g1") is None
    assert cache.get_external_role("g1") is None
    assert len(cache) == 0
