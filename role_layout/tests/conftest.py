"""
Shared fixtures: a manual timer stand-in and a wired-up service on an in-memory roster.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parent.parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from role_layout.layout_config import LayoutConfig
from role_layout.providers import InMemoryRoster, OutboxInspectionProvider
from role_layout.services.layout_service import RoleLayoutService


class FakeTimer:
    """Repeating timer driven by hand: fire() runs one tick."""

    def __init__(self) -> None:
        self.running = False
        self.interval: float | None = None
        self.callback = None
        self.starts = 0

    def start(self, interval, callback) -> None:
        if self.running:
            return
        self.running = True
        self.interval = interval
        self.callback = callback
        self.starts += 1

    def cancel(self) -> None:
        self.running = False
        self.callback = None

    def fire(self) -> None:
        if self.running and self.callback is not None:
            self.callback()


class ReloadRecorder:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def __call__(self, layouts) -> None:
        self.calls.append({name: layout.to_dict() for name, layout in layouts.items()})


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def reloads() -> ReloadRecorder:
    return ReloadRecorder()


@pytest.fixture
def inspector() -> OutboxInspectionProvider:
    return OutboxInspectionProvider()


@pytest.fixture
def make_service(timer, reloads, inspector):
    """Factory: service with a fresh roster, the fake timer and a reload recorder."""
    def _make(config: LayoutConfig | None = None) -> RoleLayoutService:
        return RoleLayoutService(
            InMemoryRoster(), inspector, config=config, timer=timer, on_reload=reloads
        )
    return _make


@pytest.fixture
def service(make_service) -> RoleLayoutService:
    return make_service()
