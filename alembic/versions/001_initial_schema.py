"""Initial schema for venue scheduling and notifications.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all tables plus the exclusion constraint that stops two schedules
from booking the same venue on the same day with overlapping [start, end)
minutes. The constraint needs the btree_gist extension for the equality
parts (venue_id, day_of_week).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("STUDENT", "LECTURER", "ADMIN", name="user_role")
venue_status = sa.Enum("AVAILABLE", "OCCUPIED", "MAINTENANCE", name="venue_status")
day_of_week = sa.Enum(
    "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY",
    name="day_of_week",
)
enrollment_status = sa.Enum(
    "ENROLLED", "IN_PROGRESS", "WAITLISTED", "COMPLETED", "DROPPED",
    name="enrollment_status",
)
target_audience = sa.Enum("ALL", "STUDENTS", "LECTURERS", name="target_audience")
notification_type = sa.Enum(
    "SCHEDULE_CREATED",
    "SCHEDULE_UPDATE",
    "SCHEDULE_REMOVED",
    "VENUE_STATUS_CHANGE",
    "NEW_ANNOUNCEMENT",
    "NEW_COMMENT",
    "NEW_ENROLLMENT",
    "COURSE_CREATED",
    "COURSE_ENROLLED",
    "SYSTEM",
    name="notification_type",
)


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(
        name,
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("now()"),
        nullable=nullable,
    )


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("push_token", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )
    op.create_index("idx_users_role", "users", ["role"], unique=False)

    op.create_table(
        "venues",
        sa.Column("venue_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("building", sa.Text(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("facilities", sa.JSON(), nullable=False),
        sa.Column(
            "status", venue_status, server_default="AVAILABLE", nullable=False
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "capacity > 0", name=op.f("ck_venues_capacity_positive")
        ),
        sa.PrimaryKeyConstraint("venue_id", name=op.f("pk_venues")),
    )

    op.create_table(
        "courses",
        sa.Column("course_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("lecturer_id", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["lecturer_id"],
            ["users.user_id"],
            name=op.f("fk_courses_lecturer_id_users"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("course_id", name=op.f("pk_courses")),
        sa.UniqueConstraint("code", name=op.f("uq_courses_code")),
    )
    op.create_index("idx_courses_lecturer_id", "courses", ["lecturer_id"], unique=False)

    op.create_table(
        "enrollments",
        sa.Column("enrollment_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column(
            "status", enrollment_status, server_default="ENROLLED", nullable=False
        ),
        _timestamp("enrolled_at"),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.course_id"],
            name=op.f("fk_enrollments_course_id_courses"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["users.user_id"],
            name=op.f("fk_enrollments_student_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("enrollment_id", name=op.f("pk_enrollments")),
        sa.UniqueConstraint(
            "course_id", "student_id", name="uq_enrollments_course_student"
        ),
    )
    op.create_index("idx_enrollments_course_id", "enrollments", ["course_id"], unique=False)
    op.create_index("idx_enrollments_student_id", "enrollments", ["student_id"], unique=False)

    op.create_table(
        "schedules",
        sa.Column("schedule_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("venue_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("lecturer_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", day_of_week, nullable=False),
        sa.Column("start_minute", sa.Integer(), nullable=False),
        sa.Column("end_minute", sa.Integer(), nullable=False),
        sa.Column("semester", sa.Text(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "start_minute < end_minute", name=op.f("ck_schedules_start_before_end")
        ),
        sa.CheckConstraint(
            "start_minute >= 0 AND end_minute <= 1440",
            name=op.f("ck_schedules_within_day"),
        ),
        sa.ForeignKeyConstraint(
            ["venue_id"],
            ["venues.venue_id"],
            name=op.f("fk_schedules_venue_id_venues"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.course_id"],
            name=op.f("fk_schedules_course_id_courses"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["lecturer_id"],
            ["users.user_id"],
            name=op.f("fk_schedules_lecturer_id_users"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("schedule_id", name=op.f("pk_schedules")),
    )
    op.create_index(
        "idx_schedules_venue_day", "schedules", ["venue_id", "day_of_week"], unique=False
    )
    op.create_index("idx_schedules_course_id", "schedules", ["course_id"], unique=False)
    op.create_index("idx_schedules_lecturer_id", "schedules", ["lecturer_id"], unique=False)

    # int4range defaults to '[)' bounds, matching the half-open slot model
    op.execute(
        """
        ALTER TABLE schedules
        ADD CONSTRAINT ex_schedules_no_overlap
        EXCLUDE USING gist (
            venue_id WITH =,
            day_of_week WITH =,
            int4range(start_minute, end_minute) WITH &&
        )
        """
    )

    op.create_table(
        "announcements",
        sa.Column("announcement_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "target_audience", target_audience, server_default="ALL", nullable=False
        ),
        sa.Column("pinned", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["author_id"],
            ["users.user_id"],
            name=op.f("fk_announcements_author_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("announcement_id", name=op.f("pk_announcements")),
    )

    op.create_table(
        "announcement_comments",
        sa.Column("comment_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("announcement_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["announcement_id"],
            ["announcements.announcement_id"],
            name=op.f("fk_announcement_comments_announcement_id_announcements"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_announcement_comments_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("comment_id", name=op.f("pk_announcement_comments")),
    )
    op.create_index(
        "idx_announcement_comments_announcement_id",
        "announcement_comments",
        ["announcement_id"],
        unique=False,
    )

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.Text(), nullable=True),
        sa.Column("read", sa.Boolean(), server_default=sa.false(), nullable=False),
        _timestamp("created_at", nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_notifications_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("notification_id", name=op.f("pk_notifications")),
    )
    op.create_index(
        "idx_notifications_user_created",
        "notifications",
        ["user_id", "created_at"],
        unique=False,
    )
    op.create_index(
        "idx_notifications_user_read", "notifications", ["user_id", "read"], unique=False
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("announcement_comments")
    op.drop_table("announcements")
    op.drop_table("schedules")
    op.drop_table("enrollments")
    op.drop_table("courses")
    op.drop_table("venues")
    op.drop_table("users")
    for enum in (
        notification_type,
        target_audience,
        enrollment_status,
        day_of_week,
        venue_status,
        user_role,
    ):
        enum.drop(op.get_bind(), checkfirst=True)
