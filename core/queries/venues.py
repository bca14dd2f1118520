"""Venue queries."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import schedules, venues


async def get_venue(
    conn: AsyncConnection,
    venue_id: int,
    for_update: bool = False,
) -> dict[str, Any] | None:
    """
    Get a venue by ID.

    With for_update=True the row is locked until the surrounding transaction
    ends (SELECT ... FOR UPDATE), which serializes concurrent bookings of
    the same venue. Dialects without row locks ignore the clause.
    """
    query = select(venues).where(venues.c.venue_id == venue_id)
    if for_update:
        query = query.with_for_update()
    result = await conn.execute(query)
    row = result.mappings().first()
    return dict(row) if row else None


async def update_venue(
    conn: AsyncConnection,
    venue_id: int,
    **updates: Any,
) -> dict[str, Any] | None:
    """Update a venue and return the updated record."""
    updates["updated_at"] = datetime.now(timezone.utc)
    result = await conn.execute(
        update(venues)
        .where(venues.c.venue_id == venue_id)
        .values(**updates)
        .returning(venues)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def get_lecturer_ids_for_venue(
    conn: AsyncConnection,
    venue_id: int,
) -> list[int]:
    """Distinct lecturers who hold at least one slot in the venue."""
    result = await conn.execute(
        select(schedules.c.lecturer_id)
        .where(schedules.c.venue_id == venue_id)
        .distinct()
        .order_by(schedules.c.lecturer_id)
    )
    return [row.lecturer_id for row in result]
