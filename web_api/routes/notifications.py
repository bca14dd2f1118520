"""
Notification routes.

Endpoints:
- GET /api/notifications            - Caller's notifications, newest first
- PUT /api/notifications/read-all   - Mark all as read
- PUT /api/notifications/{id}/read  - Mark one as read
- PUT /api/notifications/push-token - Register or clear the device push token
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.database import get_connection, get_transaction
from core.errors import ValidationError
from core.notifications import store
from core.notifications.channels.push import is_valid_push_token
from core.queries.users import set_push_token
from web_api.auth import get_current_user
from web_api.schemas import CamelModel

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class PushTokenUpdate(CamelModel):
    push_token: str | None = None


@router.get("")
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(store.DEFAULT_LIST_LIMIT, ge=1, le=store.MAX_LIST_LIMIT),
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    async with get_connection() as conn:
        records = await store.list_notifications(
            conn, user["user_id"], unread_only=unread_only, limit=limit
        )
        total = await store.count_notifications(
            conn, user["user_id"], unread_only=unread_only
        )
        unread = await store.count_unread(conn, user["user_id"])

    return {
        "success": True,
        "data": [store.serialize_notification(r) for r in records],
        "pagination": {"total": total},
        "unreadCount": unread,
    }


@router.put("/read-all")
async def mark_all_read(user: dict = Depends(get_current_user)) -> dict[str, Any]:
    async with get_transaction() as conn:
        count = await store.mark_all_read(conn, user["user_id"])
    return {"success": True, "data": {"count": count}}


@router.put("/push-token")
async def update_push_token(
    body: PushTokenUpdate,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    if body.push_token is not None and not is_valid_push_token(body.push_token):
        raise ValidationError("Invalid Expo push token")
    async with get_transaction() as conn:
        await set_push_token(conn, user["user_id"], body.push_token)
    return {"success": True}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    async with get_transaction() as conn:
        record = await store.mark_read(conn, notification_id, user["user_id"])
    return {"success": True, "data": store.serialize_notification(record)}
