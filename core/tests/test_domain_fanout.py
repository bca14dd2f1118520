"""Tests for the fan-out requests built by venue, announcement and enrollment writes."""

import pytest

from core import announcements, enrollment, schedules, venues
from core.enums import NotificationType, TargetAudience
from core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from core.notifications.targets import GLOBAL_ROOM, AudienceTarget, DirectTarget


async def book(seed, notifier, course, venue, start):
    identity = seed["admin"]
    await schedules.create_schedule(
        identity,
        {
            "venue_id": seed[venue]["venue_id"],
            "course_id": seed[course]["course_id"],
            "day_of_week": "THURSDAY",
            "start_time": start,
            "end_time": f"{int(start[:2]) + 1:02d}:00",
            "semester": "2026-FALL",
        },
        notifier,
    )


class TestVenueUpdate:
    @pytest.mark.asyncio
    async def test_status_change_notifies_each_lecturer_once(self, seed, notifier):
        await book(seed, notifier, "cs101", "hall_a", "09:00")
        await book(seed, notifier, "cs101", "hall_a", "11:00")
        await book(seed, notifier, "ma201", "hall_a", "13:00")
        notifier.requests.clear()

        venue = await venues.update_venue(
            seed["admin"], seed["hall_a"]["venue_id"], {"status": "MAINTENANCE"}, notifier
        )

        assert venue["status"] == "MAINTENANCE"
        targets = [r.target for r in notifier.requests]
        assert targets == [
            DirectTarget(user_id=seed["lecturer"]["user_id"]),
            DirectTarget(user_id=seed["lecturer2"]["user_id"]),
        ]
        assert {r.message for r in notifier.requests} == {
            "Venue Hall A status changed to MAINTENANCE"
        }
        # One venue-change event in total, to every live session
        events = [e for r in notifier.requests for e in r.events]
        assert len(events) == 1
        assert events[0].event == "venue-change"
        assert events[0].rooms == [GLOBAL_ROOM]

    @pytest.mark.asyncio
    async def test_unused_venue_still_broadcasts(self, seed, notifier):
        await venues.update_venue(
            seed["admin"], seed["hall_b"]["venue_id"], {"status": "OCCUPIED"}, notifier
        )

        [request] = notifier.requests
        assert request.target is None
        assert request.events[0].data["status"] == "OCCUPIED"

    @pytest.mark.asyncio
    async def test_other_fields_do_not_notify(self, seed, notifier):
        venue = await venues.update_venue(
            seed["admin"],
            seed["hall_a"]["venue_id"],
            {"capacity": 150, "facilities": ["projector", "whiteboard"]},
            notifier,
        )
        assert venue["capacity"] == 150
        assert venue["facilities"] == ["projector", "whiteboard"]
        assert notifier.requests == []

    @pytest.mark.asyncio
    async def test_admin_only(self, seed, notifier):
        with pytest.raises(AuthorizationError, match="Only admins"):
            await venues.update_venue(
                seed["lecturer"], seed["hall_a"]["venue_id"], {"status": "OCCUPIED"}, notifier
            )

    @pytest.mark.asyncio
    async def test_capacity_must_be_positive(self, seed, notifier):
        with pytest.raises(ValidationError):
            await venues.update_venue(
                seed["admin"], seed["hall_a"]["venue_id"], {"capacity": 0}, notifier
            )

    @pytest.mark.asyncio
    async def test_missing_venue(self, seed, notifier):
        with pytest.raises(NotFoundError):
            await venues.get_venue(9999)


class TestAnnouncements:
    @pytest.mark.asyncio
    async def test_audience_fanout_excludes_author(self, seed, notifier):
        announcement = await announcements.create_announcement(
            seed["lecturer"],
            {"title": "Exams", "content": "See the timetable", "target_audience": "STUDENTS"},
            notifier,
        )

        assert announcement["targetAudience"] == "STUDENTS"
        assert announcement["author"]["firstName"] == "Lee"

        [request] = notifier.requests
        assert request.type == NotificationType.NEW_ANNOUNCEMENT
        assert request.message == "New announcement: Exams"
        assert request.target == AudienceTarget(
            audience=TargetAudience.STUDENTS, exclude_user_id=seed["lecturer"]["user_id"]
        )
        assert request.events[0].rooms == ["role:STUDENT"]

    @pytest.mark.asyncio
    async def test_students_cannot_announce(self, seed, notifier):
        with pytest.raises(AuthorizationError):
            await announcements.create_announcement(
                seed["student1"], {"title": "Hi", "content": "there"}, notifier
            )

    @pytest.mark.asyncio
    async def test_title_and_content_required(self, seed, notifier):
        with pytest.raises(ValidationError):
            await announcements.create_announcement(
                seed["admin"], {"title": "  ", "content": "x"}, notifier
            )

    @pytest.mark.asyncio
    async def test_comment_notifies_author(self, seed, notifier):
        announcement = await announcements.create_announcement(
            seed["lecturer"], {"title": "Exams", "content": "Soon"}, notifier
        )
        notifier.requests.clear()

        comment = await announcements.add_comment(
            seed["student2"], announcement["id"], "When exactly?", notifier
        )

        assert comment["content"] == "When exactly?"
        [request] = notifier.requests
        assert request.type == NotificationType.NEW_COMMENT
        assert request.message == "Kim Two commented on your announcement"
        assert request.target == DirectTarget(user_id=seed["lecturer"]["user_id"])

    @pytest.mark.asyncio
    async def test_author_commenting_on_own_post_is_silent(self, seed, notifier):
        announcement = await announcements.create_announcement(
            seed["lecturer"], {"title": "Exams", "content": "Soon"}, notifier
        )
        notifier.requests.clear()

        await announcements.add_comment(seed["lecturer"], announcement["id"], "PS", notifier)
        assert notifier.requests == []

    @pytest.mark.asyncio
    async def test_comment_on_missing_announcement(self, seed, notifier):
        with pytest.raises(NotFoundError, match="Announcement not found"):
            await announcements.add_comment(seed["student1"], 9999, "hello", notifier)


class TestEnrollment:
    @pytest.mark.asyncio
    async def test_enroll_notifies_lecturer_and_student(self, seed, notifier):
        student = seed["student1"]
        result = await enrollment.enroll_student(
            student, seed["ma201"]["course_id"], notifier
        )

        assert result["status"] == "ENROLLED"
        lecturer_note, student_note = notifier.requests
        assert lecturer_note.type == NotificationType.NEW_ENROLLMENT
        assert lecturer_note.message == "Sam One enrolled in Linear Algebra"
        assert lecturer_note.target == DirectTarget(user_id=seed["lecturer2"]["user_id"])
        assert student_note.type == NotificationType.COURSE_ENROLLED
        assert student_note.target == DirectTarget(user_id=student["user_id"])

    @pytest.mark.asyncio
    async def test_dropped_student_is_reactivated(self, seed, notifier):
        result = await enrollment.enroll_student(
            seed["student4"], seed["cs101"]["course_id"], notifier
        )
        assert result["status"] == "ENROLLED"

    @pytest.mark.asyncio
    async def test_already_enrolled(self, seed, notifier):
        with pytest.raises(ConflictError, match="already enrolled"):
            await enrollment.enroll_student(
                seed["student2"], seed["cs101"]["course_id"], notifier
            )
        assert notifier.requests == []

    @pytest.mark.asyncio
    async def test_only_students_enroll(self, seed, notifier):
        with pytest.raises(AuthorizationError):
            await enrollment.enroll_student(
                seed["lecturer"], seed["ma201"]["course_id"], notifier
            )

    @pytest.mark.asyncio
    async def test_unknown_course(self, seed, notifier):
        with pytest.raises(NotFoundError):
            await enrollment.enroll_student(seed["student1"], 9999, notifier)
