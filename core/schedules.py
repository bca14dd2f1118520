"""
Recurring slot lifecycle: create, update and delete with venue conflict checks.

Every write that can change a slot's venue, day or time runs inside one
transaction that first locks the venue row, re-reads that venue's slots for
the day, and only then checks for a clash and writes. Two bookings of the
same venue are therefore serialized, even across processes. SQLite has no
row locks, so there every transaction begins IMMEDIATE instead (see
core.database). The PostgreSQL
exclusion constraint is the last line: its violation is reported as a
ConflictError as well.

Fan-out to the course roster happens after commit and never fails the write.
"""

import logging
import math

from sqlalchemy.exc import IntegrityError

from .conflicts import Slot, find_conflict
from .database import get_connection, get_transaction
from .enums import DayOfWeek, NotificationType, UserRole
from .errors import ConflictError, NotFoundError, ValidationError
from .notifications.presence import (
    EVENT_SCHEDULE_UPDATE,
    course_room,
    schedule_update_rooms,
)
from .notifications.remote import Notifier
from .notifications.targets import CourseRosterTarget, FanoutRequest, LiveEvent
from .notifications.templates import get_message
from .notifications.urls import build_course_link
from .permissions import require_lecturer_of, role_of
from .queries import courses as course_queries
from .queries import schedules as schedule_queries
from .queries import venues as venue_queries
from .tables import SCHEDULE_OVERLAP_CONSTRAINT
from .timeslots import format_time, parse_day, parse_time, validate_interval

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Fields whose change can create a clash
_SLOT_FIELDS = ("venue_id", "day_of_week", "start_minute", "end_minute")


# =====================================================
# Serialization
# =====================================================


def serialize_schedule(row: dict) -> dict:
    """Wire form of a schedule row (as returned by the detail queries)."""
    day = row["day_of_week"]
    created_at = row.get("created_at")
    updated_at = row.get("updated_at")
    return {
        "id": row["schedule_id"],
        "venueId": row["venue_id"],
        "courseId": row["course_id"],
        "lecturerId": row["lecturer_id"],
        "dayOfWeek": getattr(day, "value", day),
        "startTime": format_time(row["start_minute"]),
        "endTime": format_time(row["end_minute"]),
        "semester": row["semester"],
        "course": {
            "id": row["course_id"],
            "code": row.get("course_code"),
            "name": row.get("course_name"),
        },
        "venue": {
            "id": row["venue_id"],
            "name": row.get("venue_name"),
            "building": row.get("venue_building"),
        },
        "createdAt": created_at.isoformat() if created_at else None,
        "updatedAt": updated_at.isoformat() if updated_at else None,
    }


# =====================================================
# Internal helpers
# =====================================================


async def _lock_venue(conn, venue_id: int) -> dict:
    venue = await venue_queries.get_venue(conn, venue_id, for_update=True)
    if not venue:
        raise NotFoundError("Venue not found")
    return venue


async def _get_course(conn, course_id: int) -> dict:
    course = await course_queries.get_course(conn, course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


async def _ensure_slot_free(conn, candidate: Slot, exclude_id: int | None = None) -> None:
    existing = await schedule_queries.get_slots_for_venue_day(
        conn, candidate.venue_id, candidate.day_of_week
    )
    clash = find_conflict(candidate, existing, exclude_id=exclude_id)
    if clash is not None:
        logger.info(
            f"Rejected booking of venue {candidate.venue_id} on "
            f"{candidate.day_of_week.value} {format_time(candidate.start_minute)}-"
            f"{format_time(candidate.end_minute)}: clashes with schedule {clash.schedule_id}"
        )
        raise ConflictError(conflicting_schedule_id=clash.schedule_id)


def _raise_if_overlap(error: IntegrityError) -> None:
    """Report an exclusion-constraint violation as a booking conflict."""
    if SCHEDULE_OVERLAP_CONSTRAINT in str(error.orig):
        raise ConflictError() from error
    raise error


def _schedule_event(
    action: str,
    schedule_id: int,
    course_id: int,
    lecturer_id: int,
    schedule: dict | None = None,
    extra_rooms: list[str] | None = None,
) -> LiveEvent:
    data = {
        "event": action,
        "scheduleId": schedule_id,
        "courseId": course_id,
        "lecturerId": lecturer_id,
    }
    if schedule is not None:
        data["schedule"] = schedule
    rooms = schedule_update_rooms(course_id, lecturer_id)
    for room in extra_rooms or []:
        if room not in rooms:
            rooms.append(room)
    return LiveEvent(event=EVENT_SCHEDULE_UPDATE, data=data, rooms=rooms)


# =====================================================
# Lifecycle
# =====================================================


async def create_schedule(identity: dict, data: dict, notifier: Notifier) -> dict:
    """
    Book a recurring slot for a course in a venue.

    Args:
        identity: The authenticated caller
        data: venue_id, course_id, day_of_week, start_time, end_time, semester
        notifier: Where the roster fan-out request goes

    Returns:
        The created schedule (wire form)

    Raises:
        ValidationError: Malformed day or time, or start not before end
        NotFoundError: Venue or course does not exist
        AuthorizationError: Caller is not the course's lecturer or an admin
        ConflictError: The venue is already booked for an overlapping time
    """
    day = parse_day(data["day_of_week"])
    start = parse_time(data["start_time"])
    end = parse_time(data["end_time"], end_of_day=True)
    validate_interval(start, end)
    semester = (data.get("semester") or "").strip()
    if not semester:
        raise ValidationError("Semester is required")

    async with get_transaction() as conn:
        await _lock_venue(conn, data["venue_id"])
        course = await _get_course(conn, data["course_id"])
        require_lecturer_of(
            identity,
            course["lecturer_id"],
            "You can only create schedules for your own courses",
        )

        candidate = Slot(data["venue_id"], day, start, end)
        await _ensure_slot_free(conn, candidate)

        try:
            schedule_id = await schedule_queries.insert_schedule(
                conn,
                venue_id=data["venue_id"],
                course_id=course["course_id"],
                lecturer_id=course["lecturer_id"],
                day_of_week=day,
                start_minute=start,
                end_minute=end,
                semester=semester,
            )
        except IntegrityError as e:
            _raise_if_overlap(e)
        schedule = serialize_schedule(
            await schedule_queries.get_schedule(conn, schedule_id)
        )

    logger.info(
        f"Schedule {schedule_id} created for course {course['code']} by user {identity['user_id']}"
    )
    await notifier.notify(
        FanoutRequest(
            type=NotificationType.SCHEDULE_CREATED,
            message=get_message(
                NotificationType.SCHEDULE_CREATED,
                {"course_name": course["name"], "day_of_week": day.value},
            ),
            link=build_course_link(course["course_id"]),
            target=CourseRosterTarget(course_id=course["course_id"]),
            events=[
                _schedule_event(
                    "created",
                    schedule_id,
                    course["course_id"],
                    course["lecturer_id"],
                    schedule=schedule,
                )
            ],
        )
    )
    return schedule


async def update_schedule(
    identity: dict,
    schedule_id: int,
    changes: dict,
    notifier: Notifier,
) -> dict:
    """
    Change any of a slot's venue, course, day, times or semester.

    Only the keys present in `changes` are applied. The clash check runs
    (excluding the slot itself) when venue, day or time change. A new course
    brings its own lecturer with it.

    Raises:
        Same as create_schedule, plus NotFoundError for an unknown schedule
    """
    async with get_transaction() as conn:
        current = await schedule_queries.get_schedule(conn, schedule_id)
        if not current:
            raise NotFoundError("Schedule not found")

        venue_id = changes.get("venue_id") or current["venue_id"]
        await _lock_venue(conn, venue_id)

        course_id = current["course_id"]
        course = await _get_course(conn, course_id)
        moving_course = bool(changes.get("course_id")) and changes["course_id"] != course_id
        if moving_course:
            course = await _get_course(conn, changes["course_id"])
            course_id = course["course_id"]

        require_lecturer_of(
            identity,
            current["lecturer_id"],
            "You can only update your own schedules",
        )
        if moving_course:
            require_lecturer_of(
                identity,
                course["lecturer_id"],
                "You can only move schedules to your own courses",
            )

        day = (
            parse_day(changes["day_of_week"])
            if changes.get("day_of_week")
            else DayOfWeek(current["day_of_week"])
        )
        start = (
            parse_time(changes["start_time"])
            if changes.get("start_time")
            else current["start_minute"]
        )
        end = (
            parse_time(changes["end_time"], end_of_day=True)
            if changes.get("end_time")
            else current["end_minute"]
        )
        validate_interval(start, end)

        updates = {
            "venue_id": venue_id,
            "course_id": course_id,
            "lecturer_id": course["lecturer_id"],
            "day_of_week": day,
            "start_minute": start,
            "end_minute": end,
        }
        if changes.get("semester"):
            updates["semester"] = changes["semester"].strip()

        if any(updates[f] != current[f] for f in _SLOT_FIELDS):
            candidate = Slot(venue_id, day, start, end, schedule_id)
            await _ensure_slot_free(conn, candidate, exclude_id=schedule_id)

        try:
            await schedule_queries.update_schedule(conn, schedule_id, **updates)
        except IntegrityError as e:
            _raise_if_overlap(e)
        schedule = serialize_schedule(
            await schedule_queries.get_schedule(conn, schedule_id)
        )

    logger.info(f"Schedule {schedule_id} updated by user {identity['user_id']}")
    extra_rooms = []
    if current["course_id"] != course_id:
        extra_rooms.append(course_room(current["course_id"]))
    await notifier.notify(
        FanoutRequest(
            type=NotificationType.SCHEDULE_UPDATE,
            message=get_message(
                NotificationType.SCHEDULE_UPDATE, {"course_name": course["name"]}
            ),
            link=build_course_link(course_id),
            target=CourseRosterTarget(course_id=course_id),
            events=[
                _schedule_event(
                    "updated",
                    schedule_id,
                    course_id,
                    course["lecturer_id"],
                    schedule=schedule,
                    extra_rooms=extra_rooms,
                )
            ],
        )
    )
    return schedule


async def delete_schedule(identity: dict, schedule_id: int, notifier: Notifier) -> None:
    """
    Remove a slot and tell its course roster.

    Raises:
        NotFoundError: Schedule does not exist
        AuthorizationError: Caller is not the slot's lecturer or an admin
    """
    async with get_transaction() as conn:
        current = await schedule_queries.get_schedule(conn, schedule_id)
        if not current:
            raise NotFoundError("Schedule not found")
        require_lecturer_of(
            identity,
            current["lecturer_id"],
            "You can only delete your own schedules",
        )
        await schedule_queries.delete_schedule(conn, schedule_id)

    logger.info(f"Schedule {schedule_id} deleted by user {identity['user_id']}")
    await notifier.notify(
        FanoutRequest(
            type=NotificationType.SCHEDULE_REMOVED,
            message=get_message(NotificationType.SCHEDULE_REMOVED, {}),
            link=build_course_link(current["course_id"]),
            target=CourseRosterTarget(course_id=current["course_id"]),
            events=[
                _schedule_event(
                    "deleted",
                    schedule_id,
                    current["course_id"],
                    current["lecturer_id"],
                )
            ],
        )
    )


# =====================================================
# Reads
# =====================================================


async def get_schedule(schedule_id: int) -> dict:
    async with get_connection() as conn:
        row = await schedule_queries.get_schedule(conn, schedule_id)
    if not row:
        raise NotFoundError("Schedule not found")
    return serialize_schedule(row)


async def list_schedules(
    venue_id: int | None = None,
    lecturer_id: int | None = None,
    day_of_week: str | None = None,
    semester: str | None = None,
    course_id: int | None = None,
    course_code: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """
    Filtered schedule listing, ordered by day then start time.

    Returns:
        {"data": [...], "pagination": {"total", "page", "limit", "pages"}}
    """
    page = max(1, page)
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    day = parse_day(day_of_week) if day_of_week else None

    async with get_connection() as conn:
        rows, total = await schedule_queries.list_schedules(
            conn,
            venue_id=venue_id,
            lecturer_id=lecturer_id,
            day_of_week=day,
            semester=semester,
            course_id=course_id,
            course_code=course_code,
            page=page,
            limit=limit,
        )

    return {
        "data": [serialize_schedule(row) for row in rows],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


async def get_my_schedule(identity: dict) -> list[dict]:
    """Lecturers see what they teach, students what they attend, admins everything."""
    role = role_of(identity)
    async with get_connection() as conn:
        if role == UserRole.LECTURER:
            rows = await schedule_queries.get_schedules_for_lecturer(
                conn, identity["user_id"]
            )
        elif role == UserRole.STUDENT:
            rows = await schedule_queries.get_schedules_for_student(
                conn, identity["user_id"]
            )
        else:
            rows = await schedule_queries.get_all_schedules(conn)
    return [serialize_schedule(row) for row in rows]
