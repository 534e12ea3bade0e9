"""
Role layout service: one instance per roster session, owning the role cache,
membership index, inspection queue and projector.

Every roster, inspection, authority, lockdown and configuration event funnels through
here. Each handler re-resolves only the members whose inputs moved, re-buckets them,
re-projects the layouts and fires the reload callback at most once, and only when the
projected layouts actually changed.
"""
from __future__ import annotations

from typing import Any, Callable

from role_layout.core.logging import get_logger
from role_layout.layout_config import LayoutConfig
from role_layout.models import InspectState, LayoutDescriptor, Member, PartyState
from role_layout.providers import InspectionProvider, RosterProvider
from role_layout.roles import (
    ExternalRole,
    Role,
    WowClass,
    external_role_for_spec,
    resolve_role,
)
from role_layout.services.inspection import InspectionQueue, RepeatingTimer
from role_layout.services.membership_index import MembershipIndex
from role_layout.services.projector import LayoutProjector
from role_layout.services.role_cache import RoleCache

logger = get_logger(__name__)

ReloadCallback = Callable[[dict[str, LayoutDescriptor]], None]


class RoleLayoutService:
    def __init__(
        self,
        roster: RosterProvider,
        inspector: InspectionProvider,
        config: LayoutConfig | None = None,
        timer: RepeatingTimer | None = None,
        projector: LayoutProjector | None = None,
        on_reload: ReloadCallback | None = None,
        retry_interval: float | None = None,
    ) -> None:
        self.roster = roster
        self.config = config or LayoutConfig()
        self.cache = RoleCache()
        self.index = MembershipIndex()
        self.queue = InspectionQueue(
            inspector.request_inspection, roster.is_reachable, timer=timer, interval=retry_interval
        )
        self.projector = projector or LayoutProjector()
        self._on_reload = on_reload
        self.reload_count = 0

    # ---------- Queries ----------

    @property
    def layouts(self) -> dict[str, LayoutDescriptor]:
        return self.projector.layouts

    def role_of(self, guid: str) -> Role | None:
        """Resolved role for a roster member, computed on first access; None if not in roster."""
        if guid not in self.roster:
            return None
        return self.cache.get_or_compute(guid, self._compute_role)

    def inspect_state(self, guid: str) -> InspectState:
        return self.queue.state(guid)

    def name_list(self, role: Role) -> str:
        return self.index.name_list(role)

    def members_snapshot(self) -> list[dict[str, Any]]:
        out = []
        for member in self.roster.iter_members():
            d = member.to_dict()
            role = self.role_of(member.guid)
            d["role"] = role.value if role else None
            d["inspect_state"] = self.queue.state(member.guid).value
            out.append(d)
        return sorted(out, key=lambda d: (d["name"], d["guid"]))

    # ---------- Roster events ----------

    def join(self, member: Member, event: str = "roster_joined") -> Role:
        """Add a member; it gets a provisional role at once and is queued for inspection."""
        if member.guid in self.roster:
            self.leave(member.guid, event=event, update=False)
        self.roster.join(member)
        self.cache.update_external_role(member.guid, self._effective_external(member))
        self._reresolve(member.guid)
        if not member.is_pet:
            if member.spec_id is None:
                self.queue.enqueue(member.guid)
            else:
                self.queue.mark_resolved(member.guid)
        self.update_layout(event)
        return self.cache.get_or_compute(member.guid, self._compute_role)

    def update_member(
        self,
        guid: str,
        *,
        name: str | None = None,
        unit_class: WowClass | None = None,
        external_role: ExternalRole | None = None,
        connected: bool | None = None,
        event: str = "roster_changed",
    ) -> Member:
        """Apply changed roster facts; raises UnknownMemberError for unknown guids."""
        before = self.roster.get(guid)
        old_name = before.name if before else None
        was_connected = before.connected if before else False
        member = self.roster.update(
            guid, name=name, unit_class=unit_class, external_role=external_role, connected=connected
        )
        if member.name != old_name:
            # Late name resolution: rebuild from member sets rather than diffing names.
            self.index.rebuild(self._names_by_guid(), self._roles_by_guid())
        self.cache.update_external_role(guid, self._effective_external(member))
        self._reresolve(guid)
        if (
            member.connected
            and not was_connected
            and not member.is_pet
            and self.queue.state(guid) is InspectState.UNKNOWN
        ):
            self.queue.enqueue(guid)
        self.update_layout(event)
        return member

    def leave(self, guid: str, event: str = "roster_left", update: bool = True) -> None:
        """Remove a member and purge all derived state; raises UnknownMemberError for unknown guids."""
        self.roster.leave(guid)
        self.queue.cancel(guid)
        self.index.remove(guid)
        self.cache.forget(guid)
        if update:
            self.update_layout(event)

    def set_party(self, state: PartyState, group_size: int, in_instance: bool, event: str = "party_changed") -> bool:
        self.roster.set_party(state, group_size, in_instance)
        return self.update_layout(event)

    def resync(self, event: str = "roster_resync") -> bool:
        """Full recompute from the roster: drop stale state, re-resolve everyone, rebuild buckets."""
        live = {m.guid for m in self.roster.iter_members()}
        for guid in self.index.guids() - live:
            self.queue.cancel(guid)
            self.cache.forget(guid)
        for member in self.roster.iter_members():
            self.cache.update_external_role(member.guid, self._effective_external(member))
            self.cache.update_role(member.guid, self._compute_role(member.guid))
        self.index.rebuild(self._names_by_guid(), self._roles_by_guid())
        return self.update_layout(event)

    # ---------- Inspection events ----------

    def on_inspect_ready(
        self,
        guid: str,
        spec_id: int | None,
        unit_class: WowClass | None = None,
        event: str = "inspect_ready",
    ) -> bool:
        """Specialization data arrived. Returns False when the response was empty, or stale and dropped."""
        member = self.roster.get(guid)
        if member is not None and spec_id is None:
            # A fetch that came back empty; the member stays pending for the next pass.
            logger.debug("empty inspection result", extra={"guid": guid, "event": event})
            return False
        if member is None or not self.queue.complete(guid):
            logger.debug("discarding stale inspection", extra={"guid": guid, "event": event})
            return False
        member.spec_id = spec_id
        if unit_class is not None and member.unit_class is None:
            member.unit_class = unit_class
        self.cache.update_external_role(guid, self._effective_external(member))
        if self._reresolve(guid):
            self.update_layout(event)
        return True

    def invalidate_spec(self, guid: str, event: str = "spec_changed") -> bool:
        """Specialization changed: re-enter pending; the member keeps its role until data arrives."""
        member = self.roster.get(guid)
        if member is None or member.is_pet:
            return False
        logger.debug("specialization invalidated", extra={"guid": guid, "event": event})
        self.queue.enqueue(guid)
        return True

    def on_inspect_removed(self, guid: str, event: str = "inspect_removed") -> None:
        """Cached specialization data for guid was dropped by the provider."""
        member = self.roster.get(guid)
        if member is None:
            return
        member.spec_id = None
        self.cache.update_external_role(guid, self._effective_external(member))
        if self._reresolve(guid):
            self.update_layout(event)

    # ---------- External authority ----------

    def on_role_assigned(self, name: str, new_role: ExternalRole | None, event: str = "role_changed_inform") -> bool:
        """Authority assigned new_role to the member called name. Unknown names are ignored."""
        guid = self.roster.guid_by_name(name)
        if guid is None:
            return False
        member = self.roster.get(guid)
        if member is None:
            return False
        member.external_role = new_role
        if not self.cache.update_external_role(guid, self._effective_external(member)):
            return False
        if self._reresolve(guid):
            self.update_layout(event)
        return True

    # ---------- Lockdown ----------

    def lockdown_started(self) -> None:
        self.queue.suspend()

    def lockdown_ended(self) -> None:
        self.queue.resume()

    # ---------- Configuration ----------

    def update_config(self, config: LayoutConfig, event: str = "config_changed") -> bool:
        self.config = config
        return self.resync(event)

    # ---------- Projection ----------

    def update_layout(self, event: str = "update") -> bool:
        logger.debug("update_layout", extra={"event": event})
        changed = self.projector.project(self.index, self.config, self.roster.party_info())
        if changed:
            self.reload_count += 1
            logger.info("layout changed; requesting reload", extra={"event": event})
            if self._on_reload is not None:
                self._on_reload(self.layouts)
        return changed

    def shutdown(self) -> None:
        """Tear down the session: cancel pending work and drop derived state."""
        self.queue.clear()
        self.cache.clear()
        self.index.clear()

    # ---------- Internals ----------

    def _effective_external(self, member: Member) -> ExternalRole | None:
        if member.external_role is not None or not self.config.spec_implied_external_role:
            return member.external_role
        return external_role_for_spec(member.spec_id)

    def _compute_role(self, guid: str) -> Role:
        member = self.roster.get(guid)
        if member is None:
            return Role.RANGED
        return resolve_role(member.role_inputs(self.cache.get_external_role(guid)), self.config)

    def _reresolve(self, guid: str) -> bool:
        """Resolve guid again; re-bucket and return True when its role changed."""
        member = self.roster.get(guid)
        if member is None:
            return False
        old_role = self.cache.get_role(guid)
        new_role = self._compute_role(guid)
        if not self.cache.update_role(guid, new_role):
            return False
        self.index.rebucket(guid, member.name, old_role, new_role)
        logger.debug(
            "role changed",
            extra={"guid": guid, "role": new_role.value},
        )
        return True

    def _names_by_guid(self) -> dict[str, str]:
        return {m.guid: m.name for m in self.roster.iter_members()}

    def _roles_by_guid(self) -> dict[str, Role]:
        roles: dict[str, Role] = {}
        for member in self.roster.iter_members():
            role = self.cache.get_role(member.guid)
            if role is not None:
                roles[member.guid] = role
        return roles
