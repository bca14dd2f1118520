"""Announcements and comments, with audience and author fan-out."""

import logging

from .database import get_transaction
from .enums import NotificationType, TargetAudience, UserRole
from .errors import NotFoundError, ValidationError
from .notifications.presence import EVENT_NEW_ANNOUNCEMENT, audience_rooms
from .notifications.remote import Notifier
from .notifications.targets import AudienceTarget, DirectTarget, FanoutRequest, LiveEvent
from .notifications.templates import get_message
from .notifications.urls import build_announcement_link
from .permissions import require_role
from .queries import announcements as announcement_queries
from .queries import users as user_queries

logger = logging.getLogger(__name__)


def serialize_announcement(row: dict, author: dict | None = None) -> dict:
    audience = row["target_audience"]
    created_at = row.get("created_at")
    data = {
        "id": row["announcement_id"],
        "title": row["title"],
        "content": row["content"],
        "targetAudience": getattr(audience, "value", audience),
        "pinned": bool(row.get("pinned")),
        "authorId": row["author_id"],
        "createdAt": created_at.isoformat() if created_at else None,
    }
    if author:
        data["author"] = {
            "id": author["user_id"],
            "firstName": author.get("first_name"),
            "lastName": author.get("last_name"),
        }
    return data


def serialize_comment(row: dict) -> dict:
    created_at = row.get("created_at")
    return {
        "id": row["comment_id"],
        "announcementId": row["announcement_id"],
        "userId": row["user_id"],
        "content": row["content"],
        "createdAt": created_at.isoformat() if created_at else None,
    }


async def create_announcement(identity: dict, data: dict, notifier: Notifier) -> dict:
    """
    Publish an announcement (lecturers and admins only).

    Everyone in the target audience except the author gets a
    NEW_ANNOUNCEMENT notification; live sessions in the audience's rooms get
    a new-announcement event.
    """
    require_role(
        identity,
        UserRole.LECTURER,
        UserRole.ADMIN,
        message="Only lecturers and admins can create announcements",
    )
    title = (data.get("title") or "").strip()
    content = (data.get("content") or "").strip()
    if not title or not content:
        raise ValidationError("Title and content are required")
    audience = TargetAudience(data.get("target_audience") or TargetAudience.ALL)

    async with get_transaction() as conn:
        row = await announcement_queries.create_announcement(
            conn,
            title=title,
            content=content,
            author_id=identity["user_id"],
            target_audience=audience,
            pinned=bool(data.get("pinned")),
        )

    announcement = serialize_announcement(row, author=identity)
    logger.info(
        f"Announcement {announcement['id']} published to {audience.value} by user {identity['user_id']}"
    )
    await notifier.notify(
        FanoutRequest(
            type=NotificationType.NEW_ANNOUNCEMENT,
            message=get_message(NotificationType.NEW_ANNOUNCEMENT, {"title": title}),
            link=build_announcement_link(announcement["id"]),
            target=AudienceTarget(audience=audience, exclude_user_id=identity["user_id"]),
            events=[
                LiveEvent(
                    event=EVENT_NEW_ANNOUNCEMENT,
                    data=announcement,
                    rooms=audience_rooms(audience),
                )
            ],
        )
    )
    return announcement


async def add_comment(
    identity: dict,
    announcement_id: int,
    content: str,
    notifier: Notifier,
) -> dict:
    """Comment on an announcement; the author hears about it unless they wrote it."""
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required")

    async with get_transaction() as conn:
        announcement = await announcement_queries.get_announcement(conn, announcement_id)
        if not announcement:
            raise NotFoundError("Announcement not found")
        row = await announcement_queries.create_comment(
            conn, announcement_id, identity["user_id"], content
        )
        commenter = await user_queries.get_user_by_id(conn, identity["user_id"])

    comment = serialize_comment(row)
    if announcement["author_id"] == identity["user_id"]:
        return comment

    await notifier.notify(
        FanoutRequest(
            type=NotificationType.NEW_COMMENT,
            message=get_message(
                NotificationType.NEW_COMMENT,
                {
                    "first_name": (commenter or identity).get("first_name") or "",
                    "last_name": (commenter or identity).get("last_name") or "",
                },
            ),
            link=build_announcement_link(announcement_id),
            target=DirectTarget(user_id=announcement["author_id"]),
        )
    )
    return comment
