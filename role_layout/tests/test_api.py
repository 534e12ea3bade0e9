"""
API integration tests.
Uses TestClient to avoid starting a server.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

import pytest

try:
    from fastapi.testclient import TestClient
    HAS_HTTPX = True
except (ImportError, RuntimeError):
    HAS_HTTPX = False

pytestmark = pytest.mark.skipif(not HAS_HTTPX, reason="httpx required for TestClient")

from role_layout.api import app


@pytest.fixture
def client():
    """Entering the client runs the lifespan, which starts a fresh roster session."""
    with TestClient(app) as c:
        yield c


def _join(client, guid, name, unit_class=None, **extra):
    body = {"guid": guid, "name": name, "unit_class": unit_class, **extra}
    resp = client.post("/roster/members", json=body)
    assert resp.status_code == 200
    return resp.json()


def _group_names(client, layout="By Role"):
    resp = client.get(f"/layouts/{layout}")
    assert resp.status_code == 200
    return [g["nameList"] for g in resp.json()["groups"]]


def test_get_roles(client):
    resp = client.get("/roles")
    assert resp.status_code == 200
    ids = [r["id"] for r in resp.json()["roles"]]
    assert ids == ["tank", "melee", "healer", "ranged", "pet"]


def test_layouts_registered_on_start(client):
    resp = client.get("/layouts")
    assert resp.status_code == 200
    layouts = resp.json()["layouts"]
    assert set(layouts) == {"By Role", "By Role w/Pets"}
    assert layouts["By Role"]["defaults"]["unitsPerColumn"] == 5
    assert [g["nameList"] for g in layouts["By Role"]["groups"]] == ["", "", "", ""]


def test_unknown_layout_404(client):
    assert client.get("/layouts/Nope").status_code == 404


def test_join_inspect_and_layout(client):
    """Warrior joins as melee, Protection result moves it to the tank group."""
    data = _join(client, "g1", "Brakka", "WARRIOR")
    assert data["role"] == "melee"
    assert data["inspect_state"] == "pending"
    assert _group_names(client) == ["", "Brakka", "", ""]

    pending = client.get("/inspect/pending").json()
    assert pending["pending"] == ["g1"]
    assert client.post("/inspect/requests/drain").json()["guids"] == ["g1"]

    resp = client.post("/inspect/g1", json={"spec_id": 73})
    assert resp.status_code == 200
    assert resp.json() == {"guid": "g1", "applied": True, "role": "tank"}
    assert _group_names(client) == ["Brakka", "", "", ""]


def test_stale_inspection_is_ignored(client):
    resp = client.post("/inspect/ghost", json={"spec_id": 73})
    assert resp.status_code == 200
    assert resp.json()["applied"] is False


def test_leave(client):
    _join(client, "g1", "Brakka", "WARRIOR")
    resp = client.delete("/roster/members/g1")
    assert resp.status_code == 200
    assert client.get("/inspect/pending").json()["pending"] == []
    assert _group_names(client) == ["", "", "", ""]
    assert client.delete("/roster/members/g1").status_code == 404


def test_update_member_404(client):
    resp = client.patch("/roster/members/ghost", json={"name": "X"})
    assert resp.status_code == 404


def test_role_assignment_with_preferred_authority(client):
    resp = client.put("/config", json={"prefer_external_role": True})
    assert resp.status_code == 200
    _join(client, "g1", "Corvin", "MAGE")
    resp = client.post("/role-assignments", json={"name": "Corvin", "role": "HEALER"})
    assert resp.status_code == 200
    assert resp.json()["changed"] is True
    assert _group_names(client) == ["", "", "Corvin", ""]


def test_role_assignment_rejects_unknown_role(client):
    resp = client.post("/role-assignments", json={"name": "Corvin", "role": "BARD"})
    assert resp.status_code == 400


def test_config_drops_unknown_values(client):
    resp = client.put(
        "/config",
        json={"group_roles": {"1": "healer", "2": "bard"}, "melee_healer_classes": ["DRUID", "BARD"]},
    )
    assert resp.status_code == 200
    config = resp.json()["config"]
    assert config["group_roles"] == {"1": "healer", "2": "melee", "3": "healer", "4": "ranged"}
    assert config["melee_healer_classes"] == ["DRUID"]
    assert client.get("/config").json() == config


def test_pet_group_toggle(client):
    _join(client, "p1", "Wolf", is_pet=True)
    assert _group_names(client, "By Role w/Pets")[4] == "Wolf"
    client.put("/config", json={"pet_group": False})
    assert client.get("/layouts/By Role w/Pets").status_code == 404


def test_party_state(client):
    resp = client.post("/roster/party-state", json={"state": "raid_25", "group_size": 25, "in_instance": True})
    assert resp.status_code == 200
    assert resp.json()["changed"] is True
    layout = client.get("/layouts/By Role").json()
    assert layout["defaults"]["maxColumns"] == 5


def test_lockdown(client):
    client.post("/lockdown/start")
    _join(client, "g1", "Brakka", "WARRIOR")
    pending = client.get("/inspect/pending").json()
    assert pending["suspended"] is True
    assert pending["pending"] == ["g1"]
    assert pending["requests"] == {}
    client.post("/lockdown/end")
    pending = client.get("/inspect/pending").json()
    assert pending["suspended"] is False
    assert pending["requests"].get("g1", 0) >= 1


def test_invalidate_spec(client):
    _join(client, "g1", "Brakka", "WARRIOR", spec_id=73)
    resp = client.post("/inspect/g1/invalidate")
    assert resp.status_code == 200
    assert resp.json()["inspect_state"] == "pending"
    assert client.post("/inspect/ghost/invalidate").status_code == 404


def test_members_listing(client):
    _join(client, "g2", "Bea", "PRIEST")
    _join(client, "g1", "Ann", "ROGUE")
    members = client.get("/roster/members").json()["members"]
    assert [(m["name"], m["role"]) for m in members] == [("Ann", "melee"), ("Bea", "ranged")]


def test_websocket_sends_layouts_on_connect(client):
    with client.websocket_connect("/ws/layout") as ws:
        data = ws.receive_json()
        assert data["type"] == "reload"
        assert "By Role" in data["layouts"]
