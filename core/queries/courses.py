"""Course and enrollment queries."""

from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import ACTIVE_ENROLLMENT_STATUSES, EnrollmentStatus, UserRole
from ..tables import courses, enrollments


async def get_course(
    conn: AsyncConnection,
    course_id: int,
) -> dict[str, Any] | None:
    """Get a course by ID."""
    result = await conn.execute(select(courses).where(courses.c.course_id == course_id))
    row = result.mappings().first()
    return dict(row) if row else None


async def get_active_student_ids(
    conn: AsyncConnection,
    course_id: int,
    exclude_user_ids: list[int] | None = None,
) -> list[int]:
    """
    Get the roster of a course: students with an active enrollment.

    Waitlisted, completed and dropped enrollments are not on the roster.
    """
    query = (
        select(enrollments.c.student_id)
        .where(enrollments.c.course_id == course_id)
        .where(enrollments.c.status.in_(ACTIVE_ENROLLMENT_STATUSES))
        .order_by(enrollments.c.student_id)
    )
    if exclude_user_ids:
        query = query.where(enrollments.c.student_id.not_in(exclude_user_ids))
    result = await conn.execute(query)
    return [row.student_id for row in result]


async def get_course_ids_for_user(
    conn: AsyncConnection,
    user_id: int,
    role: UserRole,
) -> list[int]:
    """
    Courses whose room a live connection should join.

    Students: courses they have an enrollment in. Lecturers: courses they
    teach. Admins follow courses through role:ADMIN instead.
    """
    if role == UserRole.STUDENT:
        query = (
            select(enrollments.c.course_id)
            .where(enrollments.c.student_id == user_id)
            .where(enrollments.c.status != EnrollmentStatus.DROPPED)
            .order_by(enrollments.c.course_id)
        )
        result = await conn.execute(query)
        return [row.course_id for row in result]

    if role == UserRole.LECTURER:
        result = await conn.execute(
            select(courses.c.course_id)
            .where(courses.c.lecturer_id == user_id)
            .order_by(courses.c.course_id)
        )
        return [row.course_id for row in result]

    return []


async def get_enrollment(
    conn: AsyncConnection,
    course_id: int,
    student_id: int,
) -> dict[str, Any] | None:
    result = await conn.execute(
        select(enrollments)
        .where(enrollments.c.course_id == course_id)
        .where(enrollments.c.student_id == student_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def create_enrollment(
    conn: AsyncConnection,
    course_id: int,
    student_id: int,
) -> dict[str, Any]:
    """Create an ENROLLED enrollment and return it."""
    result = await conn.execute(
        insert(enrollments)
        .values(
            course_id=course_id,
            student_id=student_id,
            status=EnrollmentStatus.ENROLLED,
        )
        .returning(enrollments)
    )
    return dict(result.mappings().first())


async def set_enrollment_status(
    conn: AsyncConnection,
    enrollment_id: int,
    status: EnrollmentStatus,
) -> dict[str, Any] | None:
    result = await conn.execute(
        update(enrollments)
        .where(enrollments.c.enrollment_id == enrollment_id)
        .values(status=status)
        .returning(enrollments)
    )
    row = result.mappings().first()
    return dict(row) if row else None
