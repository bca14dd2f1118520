"""Tests for recipient resolution and record fan-out."""

import pytest
from sqlalchemy import func, select

from core.enums import NotificationType, TargetAudience
from core.notifications.recipients import fan_out, resolve
from core.notifications.targets import AudienceTarget, CourseRosterTarget, DirectTarget
from core.tables import notifications


async def count_records(db_engine) -> int:
    async with db_engine.connect() as conn:
        return (
            await conn.execute(select(func.count()).select_from(notifications))
        ).scalar_one()


class TestResolve:
    @pytest.mark.asyncio
    async def test_direct_is_exactly_one_user(self, seed, db_engine):
        async with db_engine.connect() as conn:
            assert await resolve(conn, DirectTarget(user_id=42)) == [42]

    @pytest.mark.asyncio
    async def test_roster_skips_dropped_students(self, seed, db_engine):
        target = CourseRosterTarget(course_id=seed["cs101"]["course_id"])
        async with db_engine.connect() as conn:
            recipients = await resolve(conn, target)

        assert recipients == [
            seed["student1"]["user_id"],
            seed["student2"]["user_id"],
            seed["student3"]["user_id"],
        ]

    @pytest.mark.asyncio
    async def test_roster_exclusions(self, seed, db_engine):
        target = CourseRosterTarget(
            course_id=seed["cs101"]["course_id"],
            exclude_user_ids=[seed["student1"]["user_id"], seed["student4"]["user_id"]],
        )
        async with db_engine.connect() as conn:
            recipients = await resolve(conn, target)

        assert seed["student1"]["user_id"] not in recipients
        assert len(recipients) == 2

    @pytest.mark.asyncio
    async def test_roster_without_students_is_empty(self, seed, db_engine):
        target = CourseRosterTarget(course_id=seed["ma201"]["course_id"])
        async with db_engine.connect() as conn:
            assert await resolve(conn, target) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "audience, expected",
        [
            (TargetAudience.ALL, 6),
            (TargetAudience.STUDENTS, 4),
            (TargetAudience.LECTURERS, 1),
        ],
    )
    async def test_audience_excludes_author(self, seed, db_engine, audience, expected):
        # Seven users in total; the excluded one is a lecturer
        target = AudienceTarget(
            audience=audience, exclude_user_id=seed["lecturer"]["user_id"]
        )
        async with db_engine.connect() as conn:
            recipients = await resolve(conn, target)

        assert len(recipients) == expected
        assert seed["lecturer"]["user_id"] not in recipients
        assert len(set(recipients)) == len(recipients)


class TestFanOut:
    @pytest.mark.asyncio
    async def test_one_unread_record_per_recipient(self, seed, db_engine):
        async with db_engine.begin() as conn:
            records = await fan_out(
                conn,
                CourseRosterTarget(course_id=seed["cs101"]["course_id"]),
                NotificationType.SCHEDULE_UPDATE,
                "Schedule updated for Intro to Computing",
                "/courses/1",
            )

        assert len(records) == 3
        assert all(r["read"] is False for r in records)
        assert {r["message"] for r in records} == {"Schedule updated for Intro to Computing"}
        assert {r["link"] for r in records} == {"/courses/1"}
        assert await count_records(db_engine) == 3

    @pytest.mark.asyncio
    async def test_empty_target_writes_nothing(self, seed, db_engine):
        async with db_engine.begin() as conn:
            records = await fan_out(
                conn,
                CourseRosterTarget(course_id=seed["ma201"]["course_id"]),
                NotificationType.SCHEDULE_CREATED,
                "New schedule added",
            )

        assert records == []
        assert await count_records(db_engine) == 0
