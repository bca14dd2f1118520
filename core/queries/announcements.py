"""Announcement and comment queries."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import TargetAudience
from ..tables import announcement_comments, announcements


async def get_announcement(
    conn: AsyncConnection,
    announcement_id: int,
) -> dict[str, Any] | None:
    result = await conn.execute(
        select(announcements).where(
            announcements.c.announcement_id == announcement_id
        )
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def create_announcement(
    conn: AsyncConnection,
    title: str,
    content: str,
    author_id: int,
    target_audience: TargetAudience = TargetAudience.ALL,
    pinned: bool = False,
) -> dict[str, Any]:
    result = await conn.execute(
        insert(announcements)
        .values(
            title=title,
            content=content,
            author_id=author_id,
            target_audience=target_audience,
            pinned=pinned,
            created_at=datetime.now(timezone.utc),
        )
        .returning(announcements)
    )
    return dict(result.mappings().first())


async def create_comment(
    conn: AsyncConnection,
    announcement_id: int,
    user_id: int,
    content: str,
) -> dict[str, Any]:
    result = await conn.execute(
        insert(announcement_comments)
        .values(
            announcement_id=announcement_id,
            user_id=user_id,
            content=content,
            created_at=datetime.now(timezone.utc),
        )
        .returning(announcement_comments)
    )
    return dict(result.mappings().first())
