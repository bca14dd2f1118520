"""
Course enrollment.

A student enrolling puts themselves on the course roster (ENROLLED). A
previously dropped enrollment is reactivated rather than duplicated.
"""

import logging

from .database import get_transaction
from .enums import ACTIVE_ENROLLMENT_STATUSES, EnrollmentStatus, NotificationType, UserRole
from .errors import ConflictError, NotFoundError
from .notifications.remote import Notifier
from .notifications.targets import DirectTarget, FanoutRequest
from .notifications.templates import get_message
from .notifications.urls import build_course_link
from .permissions import require_role
from .queries import courses as course_queries
from .queries import users as user_queries

logger = logging.getLogger(__name__)


def serialize_enrollment(row: dict) -> dict:
    status = row["status"]
    enrolled_at = row.get("enrolled_at")
    return {
        "id": row["enrollment_id"],
        "courseId": row["course_id"],
        "studentId": row["student_id"],
        "status": getattr(status, "value", status),
        "enrolledAt": enrolled_at.isoformat() if enrolled_at else None,
    }


async def enroll_student(identity: dict, course_id: int, notifier: Notifier) -> dict:
    """
    Enroll the calling student in a course.

    The lecturer gets NEW_ENROLLMENT and the student COURSE_ENROLLED.

    Raises:
        AuthorizationError: Caller is not a student
        NotFoundError: Course does not exist
        ConflictError: Already enrolled (or waitlisted/completed)
    """
    require_role(identity, UserRole.STUDENT, message="Only students can enroll in courses")
    student_id = identity["user_id"]

    async with get_transaction() as conn:
        course = await course_queries.get_course(conn, course_id)
        if not course:
            raise NotFoundError("Course not found")

        existing = await course_queries.get_enrollment(conn, course_id, student_id)
        if existing is None:
            enrollment = await course_queries.create_enrollment(conn, course_id, student_id)
        elif existing["status"] == EnrollmentStatus.DROPPED:
            enrollment = await course_queries.set_enrollment_status(
                conn, existing["enrollment_id"], EnrollmentStatus.ENROLLED
            )
        else:
            status = EnrollmentStatus(existing["status"])
            if status in ACTIVE_ENROLLMENT_STATUSES:
                raise ConflictError("You are already enrolled in this course")
            raise ConflictError(f"Your enrollment in this course is {status.value}")

        student = await user_queries.get_user_by_id(conn, student_id) or identity

    logger.info(f"User {student_id} enrolled in course {course['code']}")
    link = build_course_link(course_id)
    await notifier.notify(
        FanoutRequest(
            type=NotificationType.NEW_ENROLLMENT,
            message=get_message(
                NotificationType.NEW_ENROLLMENT,
                {
                    "first_name": student.get("first_name") or "",
                    "last_name": student.get("last_name") or "",
                    "course_name": course["name"],
                },
            ),
            link=link,
            target=DirectTarget(user_id=course["lecturer_id"]),
        )
    )
    await notifier.notify(
        FanoutRequest(
            type=NotificationType.COURSE_ENROLLED,
            message=get_message(
                NotificationType.COURSE_ENROLLED, {"course_name": course["name"]}
            ),
            link=link,
            target=DirectTarget(user_id=student_id),
        )
    )
    return serialize_enrollment(enrollment)
