"""
Real-time WebSocket endpoint.

Connect to /ws?token=<jwt> (or send Authorization: Bearer <jwt>). A
connection with a missing or invalid credential is closed with 1008 before
it joins any room. Server -> client frames are JSON objects
{"event": <name>, "data": <payload>}; the first one is "connected".
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, status
from starlette.websockets import WebSocketState

from core.database import get_connection
from core.enums import UserRole
from core.notifications.presence import (
    EVENT_CONNECTED,
    PresenceRouter,
    PresenceSession,
)
from core.queries.courses import get_course_ids_for_user
from web_api.auth import authenticate_token, extract_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _pump(websocket: WebSocket, session: PresenceSession) -> None:
    """Forward queued events to the socket until the session is closed."""
    try:
        while True:
            frame = await session.queue.get()
            if frame is None:
                break
            await websocket.send_json(frame)
    except Exception as e:
        logger.debug(f"Stopped sending to user {session.user_id}: {e}")
        return

    if websocket.application_state == WebSocketState.CONNECTED:
        await websocket.close(code=status.WS_1001_GOING_AWAY)


async def load_identity(credential: str | None) -> tuple[dict, list[int]] | None:
    """Resolve a connection credential to (user, course IDs to follow)."""
    user = await authenticate_token(credential)
    if not user:
        return None
    async with get_connection() as conn:
        course_ids = await get_course_ids_for_user(
            conn, user["user_id"], UserRole(user["role"])
        )
    return user, course_ids


@router.websocket("/ws")
async def realtime(websocket: WebSocket, token: str | None = None):
    presence: PresenceRouter = websocket.app.state.presence

    credential = token or extract_token(
        websocket.headers.get("authorization"), websocket.cookies.get("session")
    )
    identity = await load_identity(credential)
    if identity is None:
        logger.info("Rejected WebSocket connection: missing or invalid credential")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user, course_ids = identity
    role = UserRole(user["role"])

    await websocket.accept()
    session = presence.connect(user["user_id"], role, course_ids)
    await websocket.send_json(
        {
            "event": EVENT_CONNECTED,
            "data": {
                "userId": user["user_id"],
                "role": role.value,
                "rooms": sorted(session.rooms),
            },
        }
    )

    sender = asyncio.create_task(_pump(websocket, session))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        presence.disconnect(session)
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
