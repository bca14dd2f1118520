"""
Recipient resolution.

Turns a target strategy into the set of user IDs that must receive a
notification, and writes one notification record per recipient. This is the
only path by which notification records are created.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncConnection

from core.enums import NotificationType
from core.notifications.store import create_notifications
from core.notifications.targets import (
    AudienceTarget,
    CourseRosterTarget,
    DirectTarget,
    Target,
)
from core.queries.courses import get_active_student_ids
from core.queries.users import get_user_ids_for_audience

logger = logging.getLogger(__name__)


def _unique(user_ids: list[int]) -> list[int]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(user_ids))


async def resolve(conn: AsyncConnection, target: Target) -> list[int]:
    """
    Resolve a target to its recipients.

    Returns:
        User IDs, each at most once. An empty audience or roster yields [].
    """
    if isinstance(target, DirectTarget):
        return [target.user_id]

    if isinstance(target, AudienceTarget):
        user_ids = await get_user_ids_for_audience(
            conn, target.audience, exclude_user_id=target.exclude_user_id
        )
        return _unique(user_ids)

    if isinstance(target, CourseRosterTarget):
        student_ids = await get_active_student_ids(
            conn, target.course_id, exclude_user_ids=target.exclude_user_ids
        )
        excluded = set(target.exclude_user_ids)
        return _unique([sid for sid in student_ids if sid not in excluded])

    raise TypeError(f"Unknown target type: {type(target).__name__}")


async def fan_out(
    conn: AsyncConnection,
    target: Target,
    notification_type: NotificationType,
    message: str,
    link: str | None = None,
) -> list[dict[str, Any]]:
    """
    Resolve recipients and write one notification per recipient.

    All records share type, message and link. The caller owns the
    transaction; records for different recipients are not required to
    commit atomically.

    Returns:
        The created notification records
    """
    recipients = await resolve(conn, target)
    if not recipients:
        logger.info(f"No recipients for {notification_type.value}, nothing written")
        return []

    records = await create_notifications(
        conn, recipients, notification_type, message, link
    )
    logger.info(
        f"Wrote {len(records)} {notification_type.value} notification(s)"
    )
    return records
