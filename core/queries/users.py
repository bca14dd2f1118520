"""User-related database queries using SQLAlchemy Core."""

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import TargetAudience, UserRole
from ..tables import users

# Audience -> role filter (None means every user)
AUDIENCE_ROLES: dict[TargetAudience, UserRole | None] = {
    TargetAudience.ALL: None,
    TargetAudience.STUDENTS: UserRole.STUDENT,
    TargetAudience.LECTURERS: UserRole.LECTURER,
}


async def get_user_by_id(
    conn: AsyncConnection,
    user_id: int,
) -> dict[str, Any] | None:
    """Get a user by their database ID."""
    result = await conn.execute(select(users).where(users.c.user_id == user_id))
    row = result.mappings().first()
    return dict(row) if row else None


async def get_user_ids_for_audience(
    conn: AsyncConnection,
    audience: TargetAudience,
    exclude_user_id: int | None = None,
) -> list[int]:
    """Get IDs of every user in an audience, ordered by user_id."""
    query = select(users.c.user_id).order_by(users.c.user_id)
    role = AUDIENCE_ROLES[audience]
    if role is not None:
        query = query.where(users.c.role == role)
    if exclude_user_id is not None:
        query = query.where(users.c.user_id != exclude_user_id)
    result = await conn.execute(query)
    return [row.user_id for row in result]


async def get_push_tokens(
    conn: AsyncConnection,
    user_ids: list[int],
) -> dict[int, str]:
    """Get registered push tokens for the given users (users without one are omitted)."""
    if not user_ids:
        return {}
    result = await conn.execute(
        select(users.c.user_id, users.c.push_token)
        .where(users.c.user_id.in_(user_ids))
        .where(users.c.push_token.is_not(None))
    )
    return {row.user_id: row.push_token for row in result}


async def set_push_token(
    conn: AsyncConnection,
    user_id: int,
    push_token: str | None,
) -> bool:
    """Register (or clear) a user's push token. Returns False if the user is missing."""
    result = await conn.execute(
        update(users).where(users.c.user_id == user_id).values(push_token=push_token)
    )
    return result.rowcount > 0
