"""
REST + WebSocket surface for the role layout service.
Thin wrappers around RoleLayoutService: roster, inspection and authority events come in
over HTTP; the layout engine reads descriptors and subscribes to reload pushes.

Endpoints are async so that everything, including the inspection retry timer, runs on
the single event loop.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from role_layout.core.config import settings
from role_layout.core.logging import get_logger
from role_layout.layout_config import LayoutConfig
from role_layout.models import LayoutDescriptor, Member, PartyState
from role_layout.providers import InMemoryRoster, OutboxInspectionProvider, UnknownMemberError
from role_layout.roles import list_all_roles, parse_class, parse_external_role
from role_layout.services.layout_service import RoleLayoutService

logger = get_logger(__name__)

# ---------- Session (process-local) ----------
# One roster session per process; WebSocket subscribers get a push on every reload.

_connections: list[WebSocket] = []
_outbox = OutboxInspectionProvider()
_session: RoleLayoutService | None = None


def _layouts_payload(layouts: dict[str, LayoutDescriptor]) -> dict[str, Any]:
    return {name: layout.to_dict() for name, layout in layouts.items()}


def _on_reload(layouts: dict[str, LayoutDescriptor]) -> None:
    if not _connections:
        return
    payload = {"type": "reload", "layouts": _layouts_payload(layouts)}
    asyncio.get_running_loop().create_task(_broadcast(payload))


async def _broadcast(payload: dict[str, Any]) -> None:
    for ws in list(_connections):
        try:
            await ws.send_json(payload)
        except (WebSocketDisconnect, RuntimeError):
            if ws in _connections:
                _connections.remove(ws)


def new_session(config: LayoutConfig | None = None) -> RoleLayoutService:
    """Start a fresh roster session, tearing down the previous one."""
    global _session, _outbox
    if _session is not None:
        _session.shutdown()
    _outbox = OutboxInspectionProvider()
    _session = RoleLayoutService(InMemoryRoster(), _outbox, config=config, on_reload=_on_reload)
    _session.update_layout("session_start")
    return _session


def get_session() -> RoleLayoutService:
    if _session is None:
        return new_session()
    return _session


def _member_or_404(guid: str) -> Member:
    member = get_session().roster.get(guid)
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    new_session()
    logger.info("roster session started", extra={"event": "startup"})
    yield
    if _session is not None:
        _session.shutdown()
    logger.info("roster session closed", extra={"event": "shutdown"})


# ---------- FastAPI app ----------
app = FastAPI(
    title="Role Layout API",
    description="Role-sorted group layouts for raid frames",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request models ----------


class JoinRequest(BaseModel):
    guid: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    unit_class: str | None = Field(None, description="e.g. 'WARRIOR'; unknown classes are ignored")
    spec_id: int | None = None
    external_role: str | None = Field(None, description="TANK / HEALER / DAMAGER / NONE")
    is_pet: bool = False
    connected: bool = True


class UpdateMemberRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    unit_class: str | None = None
    external_role: str | None = None
    connected: bool | None = None


class PartyStateRequest(BaseModel):
    state: PartyState
    group_size: int = Field(..., ge=0, le=40)
    in_instance: bool = False


class InspectResultRequest(BaseModel):
    spec_id: int | None = None
    unit_class: str | None = None


class RoleAssignmentRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Full name of the member, e.g. 'Bob-Realm'")
    role: str = Field(..., description="TANK / HEALER / DAMAGER / NONE")


# ---------- Roles and layouts ----------


@app.get("/roles")
async def list_roles() -> dict[str, Any]:
    """List all roles with definitions."""
    return {
        "roles": [
            {"id": r.value, "name": d.name, "description": d.description}
            for r, d in list_all_roles()
        ]
    }


@app.get("/layouts")
async def get_layouts() -> dict[str, Any]:
    return {"layouts": _layouts_payload(get_session().layouts)}


@app.get("/layouts/{name:path}")
async def get_layout(name: str) -> dict[str, Any]:
    layout = get_session().layouts.get(name)
    if layout is None:
        raise HTTPException(status_code=404, detail="Layout not found")
    return layout.to_dict()


# ---------- Roster ----------


@app.get("/roster/members")
async def list_members() -> dict[str, Any]:
    return {"members": get_session().members_snapshot()}


@app.post("/roster/members")
async def join_member(req: JoinRequest) -> dict[str, Any]:
    """A member joined the roster. Gets a provisional role immediately."""
    session = get_session()
    member = Member(
        guid=req.guid,
        name=req.name,
        unit_class=parse_class(req.unit_class),
        spec_id=req.spec_id,
        external_role=parse_external_role(req.external_role),
        is_pet=req.is_pet,
        connected=req.connected,
    )
    role = session.join(member)
    return {**member.to_dict(), "role": role.value, "inspect_state": session.inspect_state(member.guid).value}


@app.patch("/roster/members/{guid}")
async def update_member(guid: str, req: UpdateMemberRequest) -> dict[str, Any]:
    session = get_session()
    try:
        member = session.update_member(
            guid,
            name=req.name,
            unit_class=parse_class(req.unit_class),
            external_role=parse_external_role(req.external_role),
            connected=req.connected,
        )
    except UnknownMemberError:
        raise HTTPException(status_code=404, detail="Member not found")
    role = session.role_of(guid)
    return {**member.to_dict(), "role": role.value if role else None}


@app.delete("/roster/members/{guid}")
async def leave_member(guid: str) -> dict[str, Any]:
    try:
        get_session().leave(guid)
    except UnknownMemberError:
        raise HTTPException(status_code=404, detail="Member not found")
    return {"guid": guid, "removed": True}


@app.post("/roster/party-state")
async def set_party_state(req: PartyStateRequest) -> dict[str, Any]:
    changed = get_session().set_party(req.state, req.group_size, req.in_instance)
    return {"changed": changed}


# ---------- Inspection ----------


@app.get("/inspect/pending")
async def list_pending() -> dict[str, Any]:
    """Members still waiting for specialization data, and the requests not yet picked up."""
    session = get_session()
    return {
        "pending": sorted(session.queue.pending),
        "requests": _outbox.peek(),
        "suspended": session.queue.suspended,
    }


@app.post("/inspect/requests/drain")
async def drain_requests() -> dict[str, Any]:
    """Hand outstanding inspection requests to the external inspector."""
    return {"guids": _outbox.drain()}


@app.post("/inspect/{guid}")
async def inspect_result(guid: str, req: InspectResultRequest) -> dict[str, Any]:
    """Specialization data for guid. Stale results are accepted and ignored."""
    session = get_session()
    applied = session.on_inspect_ready(guid, req.spec_id, parse_class(req.unit_class))
    role = session.role_of(guid)
    return {"guid": guid, "applied": applied, "role": role.value if role else None}


@app.post("/inspect/{guid}/invalidate")
async def invalidate_spec(guid: str) -> dict[str, Any]:
    _member_or_404(guid)
    session = get_session()
    session.invalidate_spec(guid)
    return {"guid": guid, "inspect_state": session.inspect_state(guid).value}


# ---------- External authority ----------


@app.post("/role-assignments")
async def assign_role(req: RoleAssignmentRequest) -> dict[str, Any]:
    """Role authority assigned a coarse role by member name. Unknown names are ignored."""
    role = parse_external_role(req.role)
    if role is None:
        raise HTTPException(status_code=400, detail="role must be TANK, HEALER, DAMAGER or NONE")
    changed = get_session().on_role_assigned(req.name, role)
    return {"name": req.name, "role": role.value, "changed": changed}


# ---------- Lockdown ----------


@app.post("/lockdown/start")
async def lockdown_start() -> dict[str, Any]:
    get_session().lockdown_started()
    return {"suspended": True}


@app.post("/lockdown/end")
async def lockdown_end() -> dict[str, Any]:
    get_session().lockdown_ended()
    return {"suspended": False}


# ---------- Configuration ----------


@app.get("/config")
async def get_config() -> dict[str, Any]:
    return get_session().config.to_dict()


@app.put("/config")
async def put_config(config: LayoutConfig) -> dict[str, Any]:
    """Write back user edits; unknown roles/classes are dropped, then everything is recomputed."""
    session = get_session()
    changed = session.update_config(config)
    return {"config": session.config.to_dict(), "changed": changed}


# ---------- Reload push ----------


@app.websocket("/ws/layout")
async def websocket_layout(websocket: WebSocket):
    """
    Subscribe to layout reloads. Server pushes { type: "reload", layouts } whenever the
    projected layouts change; the current layouts are sent on connect.
    """
    await websocket.accept()
    _connections.append(websocket)
    try:
        await websocket.send_json({"type": "reload", "layouts": _layouts_payload(get_session().layouts)})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        if websocket in _connections:
            _connections.remove(websocket)


# ---------- Run with: uvicorn role_layout.api:app --reload ----------
