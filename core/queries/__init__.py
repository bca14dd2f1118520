"""Query layer for database operations using SQLAlchemy Core."""

from .courses import get_active_student_ids, get_course, get_course_ids_for_user
from .schedules import get_schedule, get_slots_for_venue_day, list_schedules
from .users import get_push_tokens, get_user_by_id, get_user_ids_for_audience
from .venues import get_lecturer_ids_for_venue, get_venue

__all__ = [
    # Users
    "get_user_by_id",
    "get_user_ids_for_audience",
    "get_push_tokens",
    # Courses
    "get_course",
    "get_active_student_ids",
    "get_course_ids_for_user",
    # Venues
    "get_venue",
    "get_lecturer_ids_for_venue",
    # Schedules
    "get_schedule",
    "get_slots_for_venue_day",
    "list_schedules",
]
