#!/usr/bin/env python3
"""
Drive a running server through a small raid and print the resulting layouts.
Run with the API already up: uvicorn role_layout.api:app --reload --port 8000

  python3 scripts/try_layout.py
"""
from __future__ import annotations

import json
import sys

try:
    import httpx
except ImportError:
    print("Install httpx: pip install httpx", file=sys.stderr)
    sys.exit(1)

BASE = "http://127.0.0.1:8000"

RAID = [
    {"guid": "Player-1-0001", "name": "Brakka", "unit_class": "WARRIOR"},
    {"guid": "Player-1-0002", "name": "Aelwen", "unit_class": "DRUID"},
    {"guid": "Player-1-0003", "name": "Corvin", "unit_class": "MAGE"},
    {"guid": "Player-1-0004", "name": "Dolen", "unit_class": "PRIEST"},
    {"guid": "Pet-1-0005", "name": "Wolf", "is_pet": True},
]

# Specialization results an inspector would report back.
SPECS = {
    "Player-1-0001": 73,   # Protection Warrior
    "Player-1-0002": 105,  # Restoration Druid
    "Player-1-0003": 63,   # Fire Mage
    "Player-1-0004": 256,  # Discipline Priest
}


def main() -> None:
    client = httpx.Client(timeout=10.0)
    try:
        r = client.post(f"{BASE}/roster/party-state", json={"state": "raid_10", "group_size": 4, "in_instance": True})
        r.raise_for_status()
        for member in RAID:
            r = client.post(f"{BASE}/roster/members", json=member)
            r.raise_for_status()
            print(f"joined {member['name']}: provisional role {r.json()['role']}")

        r = client.post(f"{BASE}/inspect/requests/drain")
        r.raise_for_status()
        for guid in r.json()["guids"]:
            spec_id = SPECS.get(guid)
            r = client.post(f"{BASE}/inspect/{guid}", json={"spec_id": spec_id})
            r.raise_for_status()
            print(f"inspected {guid}: role {r.json()['role']}")

        r = client.get(f"{BASE}/layouts")
        r.raise_for_status()
        print(json.dumps(r.json(), indent=2))
    except httpx.HTTPError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()


if __name__ == "__main__":
    main()
