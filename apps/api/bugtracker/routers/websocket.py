"""
WebSocket router for real-time project events.

Provides a WebSocket endpoint that:
1. Authenticates users via bearer JWT (query param or Authorization header)
2. Lets clients join/leave project channels they are members of
3. Relays ticket and notification events published by the services

Client messages:
    "ping"                                              -> "pong"
    {"action": "join-project", "project_id": "<id>"}    -> {"event": "joined", ...}
    {"action": "leave-project", "project_id": "<id>"}   -> {"event": "left", ...}
"""

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import sessionmaker

from bugtracker.core.deps import get_realtime_hub, get_session_factory, resolve_user_from_token
from bugtracker.core.realtime import RealtimeHub, project_channel
from bugtracker.services import membership_service
from bugtracker.utils.normalization import parse_uuid


logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


def _bearer_token(websocket: WebSocket, token: str | None) -> str | None:
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def _authenticate(session_factory: sessionmaker, token: str | None) -> UUID | None:
    db = session_factory()
    try:
        return resolve_user_from_token(db, token).id
    except HTTPException:
        return None
    finally:
        db.close()


def _can_join(session_factory: sessionmaker, project_id: UUID, user_id: UUID) -> bool:
    db = session_factory()
    try:
        return membership_service.is_member(db, project_id, user_id)
    finally:
        db.close()


async def _send_event(websocket: WebSocket, event: str, data: dict) -> None:
    await websocket.send_text(json.dumps({"event": event, "data": data}))


@router.websocket("/ws")
async def realtime_channel(
    websocket: WebSocket,
    token: str | None = Query(None),
    hub: RealtimeHub = Depends(get_realtime_hub),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """WebSocket endpoint for project channels."""
    user_id = await run_in_threadpool(
        _authenticate, session_factory, _bearer_token(websocket, token)
    )
    if not user_id:
        await websocket.close(code=4001, reason="Authentication required")
        return

    await websocket.accept()

    try:
        while True:
            try:
                data = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            # Handle ping
            if data == "ping":
                await websocket.send_text("pong")
                continue

            try:
                message = json.loads(data)
            except ValueError:
                await _send_event(websocket, "error", {"message": "Invalid message"})
                continue
            if not isinstance(message, dict):
                await _send_event(websocket, "error", {"message": "Invalid message"})
                continue

            action = message.get("action")
            project_id = parse_uuid(message.get("project_id"))

            if action == "join-project":
                allowed = project_id is not None and await run_in_threadpool(
                    _can_join, session_factory, project_id, user_id
                )
                if not allowed:
                    await _send_event(
                        websocket,
                        "error",
                        {"message": "Not authorized to join this project"},
                    )
                    continue
                await hub.subscribe(project_channel(project_id), websocket)
                await _send_event(websocket, "joined", {"project_id": str(project_id)})
            elif action == "leave-project":
                if project_id is not None:
                    await hub.unsubscribe(project_channel(project_id), websocket)
                await _send_event(
                    websocket,
                    "left",
                    {"project_id": str(project_id) if project_id else None},
                )
            else:
                await _send_event(websocket, "error", {"message": "Unknown action"})
    finally:
        await hub.disconnect(websocket)
        logger.debug("Realtime connection closed for user %s", user_id)
