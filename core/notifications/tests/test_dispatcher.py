"""Tests for FanoutService: records, live frames, offline pushes, room events."""

from unittest.mock import AsyncMock

import pytest

from core.enums import NotificationType, UserRole
from core.notifications.dispatcher import FanoutService
from core.notifications.presence import PresenceRouter
from core.notifications.targets import (
    CourseRosterTarget,
    DirectTarget,
    FanoutRequest,
    LiveEvent,
)
from core.queries.users import set_push_token

TOKEN = "ExponentPushToken[abc123]"


def drain(session) -> list[dict]:
    frames = []
    while not session.queue.empty():
        frames.append(session.queue.get_nowait())
    return frames


@pytest.fixture
def presence():
    return PresenceRouter()


@pytest.fixture
def push():
    return AsyncMock(return_value=True)


@pytest.fixture
def service(presence, push):
    return FanoutService(presence, push_sender=push)


def roster_request(seed, **kwargs) -> FanoutRequest:
    course_id = seed["cs101"]["course_id"]
    return FanoutRequest(
        type=NotificationType.SCHEDULE_UPDATE,
        message="Schedule updated for Intro to Computing",
        link=f"/courses/{course_id}",
        target=CourseRosterTarget(course_id=course_id),
        **kwargs,
    )


class TestDeliver:
    @pytest.mark.asyncio
    async def test_online_get_frames_offline_with_token_get_pushes(
        self, seed, db_engine, presence, service, push
    ):
        s1, s2, s3 = (seed[f"student{n}"]["user_id"] for n in (1, 2, 3))
        async with db_engine.begin() as conn:
            await set_push_token(conn, s1, TOKEN)
            await set_push_token(conn, s3, TOKEN)

        online = presence.connect(s1, UserRole.STUDENT, [seed["cs101"]["course_id"]])

        summary = await service.deliver(roster_request(seed))

        # s1 is live (no push), s2 has no token, s3 is offline with a token
        assert summary == {"recipients": 3, "live": 1, "pushed": 1}

        [frame] = drain(online)
        assert frame["event"] == "notification"
        assert frame["data"]["userId"] == s1
        assert frame["data"]["type"] == "SCHEDULE_UPDATE"
        assert frame["data"]["read"] is False

        push.assert_awaited_once()
        args, kwargs = push.call_args
        assert args == (TOKEN, "Schedule updated for Intro to Computing")
        assert kwargs["title"] == "Schedule changed"
        assert kwargs["data"]["type"] == "SCHEDULE_UPDATE"
        assert kwargs["data"]["url"].endswith(f"/courses/{seed['cs101']['course_id']}")

    @pytest.mark.asyncio
    async def test_room_events_follow_the_records(self, seed, presence, service):
        admin = presence.connect(seed["admin"]["user_id"], UserRole.ADMIN)
        event = LiveEvent(
            event="schedule-update",
            data={"event": "deleted", "scheduleId": 4},
            rooms=["role:ADMIN"],
        )

        await service.deliver(roster_request(seed, events=[event]))

        assert drain(admin) == [
            {"event": "schedule-update", "data": {"event": "deleted", "scheduleId": 4}}
        ]

    @pytest.mark.asyncio
    async def test_events_only_request_writes_nothing(self, seed, presence, service):
        student = presence.connect(seed["student1"]["user_id"], UserRole.STUDENT)
        request = FanoutRequest(
            type=NotificationType.VENUE_STATUS_CHANGE,
            message="Venue Hall A status changed to MAINTENANCE",
            events=[LiveEvent(event="venue-change", data={"id": 1}, rooms=["*"])],
        )

        summary = await service.deliver(request)

        assert summary == {"recipients": 0, "live": 0, "pushed": 0}
        assert drain(student) == [{"event": "venue-change", "data": {"id": 1}}]

    @pytest.mark.asyncio
    async def test_one_failing_push_does_not_stop_the_others(
        self, seed, db_engine, presence
    ):
        recipients = [seed[f"student{n}"]["user_id"] for n in (1, 2, 3)]
        async with db_engine.begin() as conn:
            for user_id in recipients:
                await set_push_token(conn, user_id, TOKEN)

        push = AsyncMock(side_effect=[RuntimeError("boom"), True, False])
        service = FanoutService(presence, push_sender=push)

        summary = await service.deliver(roster_request(seed))

        assert push.await_count == 3
        assert summary["recipients"] == 3
        assert summary["pushed"] == 1

    @pytest.mark.asyncio
    async def test_invalid_tokens_are_not_pushed(self, seed, db_engine, presence, service, push):
        user_id = seed["student1"]["user_id"]
        async with db_engine.begin() as conn:
            await set_push_token(conn, user_id, "not-a-token")

        await service.deliver(
            FanoutRequest(
                type=NotificationType.SYSTEM,
                message="Maintenance tonight",
                target=DirectTarget(user_id=user_id),
            )
        )
        push.assert_not_awaited()
