"""
Service layer: role cache, membership index, inspection queue, layout projection,
and the session object that wires them to roster events.
"""
from .role_cache import RoleCache
from .membership_index import MembershipIndex, RoleBucket
from .inspection import AsyncioRepeatingTimer, InspectionQueue, PendingInspection, RepeatingTimer
from .projector import (
    LAYOUT_BY_ROLE,
    LAYOUT_BY_ROLE_WITH_PETS,
    LayoutProjector,
    active_players,
    max_columns,
)
from .layout_service import RoleLayoutService

__all__ = [
    "RoleCache",
    "MembershipIndex",
    "RoleBucket",
    "AsyncioRepeatingTimer",
    "InspectionQueue",
    "PendingInspection",
    "RepeatingTimer",
    "LAYOUT_BY_ROLE",
    "LAYOUT_BY_ROLE_WITH_PETS",
    "LayoutProjector",
    "active_players",
    "max_columns",
    "RoleLayoutService",
]
