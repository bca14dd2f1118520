"""
Durable per-user notification records.

Records are created once, only ever transition unread -> read, and are not
deleted in normal operation. They are what clients reconcile against after
(re)connecting, since live delivery is fire-and-forget.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from core.enums import NotificationType
from core.errors import NotFoundError
from core.tables import notifications

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 200


async def create_notifications(
    conn: AsyncConnection,
    user_ids: list[int],
    notification_type: NotificationType,
    message: str,
    link: str | None = None,
) -> list[dict[str, Any]]:
    """Insert one unread record per user and return the created rows."""
    if not user_ids:
        return []

    now = datetime.now(timezone.utc)
    rows = [
        {
            "user_id": user_id,
            "type": notification_type,
            "message": message,
            "link": link,
            "read": False,
            "created_at": now,
        }
        for user_id in user_ids
    ]
    result = await conn.execute(
        insert(notifications).values(rows).returning(notifications)
    )
    return [dict(row) for row in result.mappings()]


async def list_notifications(
    conn: AsyncConnection,
    user_id: int,
    unread_only: bool = False,
    limit: int = DEFAULT_LIST_LIMIT,
) -> list[dict[str, Any]]:
    """A user's notifications, newest first."""
    limit = max(1, min(limit, MAX_LIST_LIMIT))
    query = select(notifications).where(notifications.c.user_id == user_id)
    if unread_only:
        query = query.where(notifications.c.read.is_(False))
    query = query.order_by(
        notifications.c.created_at.desc(),
        notifications.c.notification_id.desc(),
    ).limit(limit)
    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()]


async def count_notifications(
    conn: AsyncConnection,
    user_id: int,
    unread_only: bool = False,
) -> int:
    query = (
        select(func.count())
        .select_from(notifications)
        .where(notifications.c.user_id == user_id)
    )
    if unread_only:
        query = query.where(notifications.c.read.is_(False))
    return (await conn.execute(query)).scalar_one()


async def count_unread(conn: AsyncConnection, user_id: int) -> int:
    return await count_notifications(conn, user_id, unread_only=True)


async def mark_read(
    conn: AsyncConnection,
    notification_id: int,
    user_id: int,
) -> dict[str, Any]:
    """
    Mark one of the caller's notifications as read.

    Raises:
        NotFoundError: If the notification does not exist or belongs to
            someone else (the two cases are deliberately indistinguishable)
    """
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.notification_id == notification_id)
        .where(notifications.c.user_id == user_id)
        .values(read=True)
        .returning(notifications)
    )
    row = result.mappings().first()
    if not row:
        raise NotFoundError("Notification not found or you are not authorized")
    return dict(row)


async def mark_all_read(conn: AsyncConnection, user_id: int) -> int:
    """
    Mark every unread notification of a user as read.

    Idempotent: a repeated call transitions nothing and returns 0.

    Returns:
        Number of records transitioned from unread to read
    """
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.user_id == user_id)
        .where(notifications.c.read.is_(False))
        .values(read=True)
    )
    return result.rowcount


def serialize_notification(record: dict[str, Any]) -> dict[str, Any]:
    """Wire form of a notification record."""
    created_at = record.get("created_at")
    notification_type = record["type"]
    return {
        "id": record["notification_id"],
        "userId": record["user_id"],
        "type": getattr(notification_type, "value", notification_type),
        "message": record["message"],
        "link": record.get("link"),
        "read": bool(record.get("read")),
        "createdAt": created_at.isoformat() if created_at else None,
    }
