"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    false,
    func,
)

from .enums import (
    day_of_week_enum,
    enrollment_status_enum,
    notification_type_enum,
    target_audience_enum,
    user_role_enum,
    venue_status_enum,
)

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)

# Name of the PostgreSQL exclusion constraint added in migration 001.
# Violations are reported to callers as booking conflicts.
SCHEDULE_OVERLAP_CONSTRAINT = "ex_schedules_no_overlap"


# =====================================================
# 1. USERS
# =====================================================
users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("email", Text, nullable=False),
    Column("first_name", Text),
    Column("last_name", Text),
    Column("role", user_role_enum, nullable=False),
    Column("push_token", Text),  # Expo push token, set by the mobile client
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("email"),
    Index("idx_users_role", "role"),
)


# =====================================================
# 2. VENUES
# =====================================================
venues = Table(
    "venues",
    metadata,
    Column("venue_id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("building", Text, nullable=False),
    Column("capacity", Integer, nullable=False),
    Column("facilities", JSON, nullable=False, default=list),
    Column("status", venue_status_enum, nullable=False, server_default="AVAILABLE"),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
    CheckConstraint("capacity > 0", name="capacity_positive"),
)


# =====================================================
# 3. COURSES
# =====================================================
courses = Table(
    "courses",
    metadata,
    Column("course_id", Integer, primary_key=True, autoincrement=True),
    Column("code", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("department", Text),
    Column(
        "lecturer_id",
        Integer,
        ForeignKey("users.user_id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("code"),
    Index("idx_courses_lecturer_id", "lecturer_id"),
)


# =====================================================
# 4. ENROLLMENTS
# =====================================================
enrollments = Table(
    "enrollments",
    metadata,
    Column("enrollment_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "course_id",
        Integer,
        ForeignKey("courses.course_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "student_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "status", enrollment_status_enum, nullable=False, server_default="ENROLLED"
    ),
    Column("enrolled_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("course_id", "student_id", name="uq_enrollments_course_student"),
    Index("idx_enrollments_course_id", "course_id"),
    Index("idx_enrollments_student_id", "student_id"),
)


# =====================================================
# 5. SCHEDULES (recurring weekly slots)
# =====================================================
schedules = Table(
    "schedules",
    metadata,
    Column("schedule_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "venue_id",
        Integer,
        ForeignKey("venues.venue_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "course_id",
        Integer,
        ForeignKey("courses.course_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "lecturer_id",
        Integer,
        ForeignKey("users.user_id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("day_of_week", day_of_week_enum, nullable=False),
    # Minutes since midnight; the slot covers [start_minute, end_minute)
    Column("start_minute", Integer, nullable=False),
    Column("end_minute", Integer, nullable=False),
    Column("semester", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
    CheckConstraint("start_minute < end_minute", name="start_before_end"),
    CheckConstraint(
        "start_minute >= 0 AND end_minute <= 1440", name="within_day"
    ),
    Index("idx_schedules_venue_day", "venue_id", "day_of_week"),
    Index("idx_schedules_course_id", "course_id"),
    Index("idx_schedules_lecturer_id", "lecturer_id"),
)


# =====================================================
# 6. ANNOUNCEMENTS
# =====================================================
announcements = Table(
    "announcements",
    metadata,
    Column("announcement_id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column(
        "target_audience", target_audience_enum, nullable=False, server_default="ALL"
    ),
    Column("pinned", Boolean, nullable=False, server_default=false()),
    Column(
        "author_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

announcement_comments = Table(
    "announcement_comments",
    metadata,
    Column("comment_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "announcement_id",
        Integer,
        ForeignKey("announcements.announcement_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("content", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_announcement_comments_announcement_id", "announcement_id"),
)


# =====================================================
# 7. NOTIFICATIONS
# =====================================================
notifications = Table(
    "notifications",
    metadata,
    Column("notification_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("type", notification_type_enum, nullable=False),
    Column("message", Text, nullable=False),
    Column("link", Text),
    Column("read", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("idx_notifications_user_created", "user_id", "created_at"),
    Index("idx_notifications_user_read", "user_id", "read"),
)
