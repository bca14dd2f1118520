"""Recurring slot (schedule) queries."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import ACTIVE_ENROLLMENT_STATUSES, DayOfWeek
from ..tables import courses, enrollments, schedules, venues

# Calendar order for sorting (enum names would sort alphabetically)
DAY_ORDER = case(
    {day: index for index, day in enumerate(DayOfWeek)},
    value=schedules.c.day_of_week,
)
CALENDAR_ORDER = (DAY_ORDER, schedules.c.start_minute, schedules.c.schedule_id)


def _detail_query():
    """Schedule rows joined with the course and venue display fields."""
    return select(
        schedules,
        courses.c.code.label("course_code"),
        courses.c.name.label("course_name"),
        venues.c.name.label("venue_name"),
        venues.c.building.label("venue_building"),
    ).select_from(
        schedules.join(courses, schedules.c.course_id == courses.c.course_id).join(
            venues, schedules.c.venue_id == venues.c.venue_id
        )
    )


async def get_schedule(
    conn: AsyncConnection,
    schedule_id: int,
) -> dict[str, Any] | None:
    """Get a schedule with course and venue display fields."""
    result = await conn.execute(
        _detail_query().where(schedules.c.schedule_id == schedule_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def get_slots_for_venue_day(
    conn: AsyncConnection,
    venue_id: int,
    day_of_week: DayOfWeek,
) -> list[dict[str, Any]]:
    """Every slot booked in a venue on a given day, by start time."""
    result = await conn.execute(
        select(schedules)
        .where(schedules.c.venue_id == venue_id)
        .where(schedules.c.day_of_week == day_of_week)
        .order_by(schedules.c.start_minute)
    )
    return [dict(row) for row in result.mappings()]


async def insert_schedule(
    conn: AsyncConnection,
    **values: Any,
) -> int:
    """Insert a schedule and return its ID."""
    now = datetime.now(timezone.utc)
    result = await conn.execute(
        insert(schedules)
        .values(created_at=now, updated_at=now, **values)
        .returning(schedules.c.schedule_id)
    )
    return result.scalar_one()


async def update_schedule(
    conn: AsyncConnection,
    schedule_id: int,
    **updates: Any,
) -> bool:
    updates["updated_at"] = datetime.now(timezone.utc)
    result = await conn.execute(
        update(schedules)
        .where(schedules.c.schedule_id == schedule_id)
        .values(**updates)
    )
    return result.rowcount > 0


async def delete_schedule(
    conn: AsyncConnection,
    schedule_id: int,
) -> bool:
    result = await conn.execute(
        delete(schedules).where(schedules.c.schedule_id == schedule_id)
    )
    return result.rowcount > 0


async def list_schedules(
    conn: AsyncConnection,
    venue_id: int | None = None,
    lecturer_id: int | None = None,
    day_of_week: DayOfWeek | None = None,
    semester: str | None = None,
    course_id: int | None = None,
    course_code: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[dict[str, Any]], int]:
    """
    Filtered, paginated schedule listing ordered by day then start time.

    Returns:
        (rows for the requested page, total matching rows)
    """
    conditions = []
    if venue_id is not None:
        conditions.append(schedules.c.venue_id == venue_id)
    if lecturer_id is not None:
        conditions.append(schedules.c.lecturer_id == lecturer_id)
    if day_of_week is not None:
        conditions.append(schedules.c.day_of_week == day_of_week)
    if semester:
        conditions.append(schedules.c.semester == semester)
    if course_id is not None:
        conditions.append(schedules.c.course_id == course_id)
    if course_code:
        conditions.append(courses.c.code.ilike(f"%{course_code}%"))

    offset = (page - 1) * limit
    query = (
        _detail_query()
        .where(*conditions)
        .order_by(*CALENDAR_ORDER)
        .offset(offset)
        .limit(limit)
    )
    count_query = (
        select(func.count())
        .select_from(
            schedules.join(courses, schedules.c.course_id == courses.c.course_id)
        )
        .where(*conditions)
    )

    total = (await conn.execute(count_query)).scalar_one()
    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()], total


async def get_schedules_for_lecturer(
    conn: AsyncConnection,
    lecturer_id: int,
) -> list[dict[str, Any]]:
    result = await conn.execute(
        _detail_query()
        .where(schedules.c.lecturer_id == lecturer_id)
        .order_by(*CALENDAR_ORDER)
    )
    return [dict(row) for row in result.mappings()]


async def get_schedules_for_student(
    conn: AsyncConnection,
    student_id: int,
) -> list[dict[str, Any]]:
    """Slots of every course the student is actively enrolled in."""
    active_courses = (
        select(enrollments.c.course_id)
        .where(enrollments.c.student_id == student_id)
        .where(enrollments.c.status.in_(ACTIVE_ENROLLMENT_STATUSES))
    )
    result = await conn.execute(
        _detail_query()
        .where(schedules.c.course_id.in_(active_courses))
        .order_by(*CALENDAR_ORDER)
    )
    return [dict(row) for row in result.mappings()]


async def get_all_schedules(conn: AsyncConnection) -> list[dict[str, Any]]:
    result = await conn.execute(_detail_query().order_by(*CALENDAR_ORDER))
    return [dict(row) for row in result.mappings()]
