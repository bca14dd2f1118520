"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    LECTURER = "LECTURER"
    ADMIN = "ADMIN"


class VenueStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"


class DayOfWeek(str, enum.Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class EnrollmentStatus(str, enum.Enum):
    ENROLLED = "ENROLLED"
    IN_PROGRESS = "IN_PROGRESS"
    WAITLISTED = "WAITLISTED"
    COMPLETED = "COMPLETED"
    DROPPED = "DROPPED"


# Enrollments that put a student on the course roster
ACTIVE_ENROLLMENT_STATUSES = (EnrollmentStatus.ENROLLED, EnrollmentStatus.IN_PROGRESS)


class TargetAudience(str, enum.Enum):
    ALL = "ALL"
    STUDENTS = "STUDENTS"
    LECTURERS = "LECTURERS"


class NotificationType(str, enum.Enum):
    SCHEDULE_CREATED = "SCHEDULE_CREATED"
    SCHEDULE_UPDATE = "SCHEDULE_UPDATE"
    SCHEDULE_REMOVED = "SCHEDULE_REMOVED"
    VENUE_STATUS_CHANGE = "VENUE_STATUS_CHANGE"
    NEW_ANNOUNCEMENT = "NEW_ANNOUNCEMENT"
    NEW_COMMENT = "NEW_COMMENT"
    NEW_ENROLLMENT = "NEW_ENROLLMENT"
    COURSE_CREATED = "COURSE_CREATED"
    COURSE_ENROLLED = "COURSE_ENROLLED"
    SYSTEM = "SYSTEM"


# =====================================================
# SQLAlchemy Enum Types
# =====================================================

user_role_enum = SQLEnum(UserRole, name="user_role", native_enum=True)

venue_status_enum = SQLEnum(VenueStatus, name="venue_status", native_enum=True)

day_of_week_enum = SQLEnum(DayOfWeek, name="day_of_week", native_enum=True)

enrollment_status_enum = SQLEnum(EnrollmentStatus, name="enrollment_status", native_enum=True)

target_audience_enum = SQLEnum(TargetAudience, name="target_audience", native_enum=True)

notification_type_enum = SQLEnum(NotificationType, name="notification_type", native_enum=True)
