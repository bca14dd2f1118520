"""API tests for the service-to-service fan-out endpoint."""

import pytest

from core.enums import UserRole
from core.notifications.remote import FANOUT_PATH, INTERNAL_TOKEN_HEADER


def payload(seed) -> dict:
    course_id = seed["cs101"]["course_id"]
    return {
        "type": "SCHEDULE_UPDATE",
        "message": "Schedule updated for Intro to Computing",
        "link": f"/courses/{course_id}",
        "target": {"kind": "course_roster", "courseId": course_id},
        "events": [
            {
                "event": "schedule-update",
                "data": {"event": "updated", "scheduleId": 1, "courseId": course_id},
                "rooms": [f"course:{course_id}"],
            }
        ],
    }


class TestInternalFanout:
    @pytest.mark.asyncio
    async def test_delivers_with_valid_token(self, client, seed, presence, monkeypatch):
        monkeypatch.setenv("INTERNAL_SERVICE_TOKEN", "s3cret")
        session = presence.connect(
            seed["student1"]["user_id"], UserRole.STUDENT, [seed["cs101"]["course_id"]]
        )

        response = await client.post(
            FANOUT_PATH, json=payload(seed), headers={INTERNAL_TOKEN_HEADER: "s3cret"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {"recipients": 3, "live": 1, "pushed": 0},
        }
        events = []
        while not session.queue.empty():
            events.append(session.queue.get_nowait()["event"])
        assert events == ["notification", "schedule-update"]

    @pytest.mark.asyncio
    async def test_wrong_token_is_401(self, client, seed, monkeypatch):
        monkeypatch.setenv("INTERNAL_SERVICE_TOKEN", "s3cret")
        response = await client.post(
            FANOUT_PATH, json=payload(seed), headers={INTERNAL_TOKEN_HEADER: "nope"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client, seed, monkeypatch):
        monkeypatch.setenv("INTERNAL_SERVICE_TOKEN", "s3cret")
        response = await client.post(FANOUT_PATH, json=payload(seed))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unconfigured_outside_dev_is_503(self, client, seed, monkeypatch):
        monkeypatch.delenv("INTERNAL_SERVICE_TOKEN", raising=False)
        monkeypatch.delenv("DEV_MODE", raising=False)
        response = await client.post(FANOUT_PATH, json=payload(seed))
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_unconfigured_in_dev_is_open(self, client, seed, monkeypatch):
        monkeypatch.delenv("INTERNAL_SERVICE_TOKEN", raising=False)
        monkeypatch.setenv("DEV_MODE", "true")
        response = await client.post(FANOUT_PATH, json=payload(seed))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_target_kind_is_422(self, client, seed, monkeypatch):
        monkeypatch.setenv("INTERNAL_SERVICE_TOKEN", "s3cret")
        bad = payload(seed)
        bad["target"] = {"kind": "everyone"}
        response = await client.post(
            FANOUT_PATH, json=bad, headers={INTERNAL_TOKEN_HEADER: "s3cret"}
        )
        assert response.status_code == 422


class TestHealth:
    @pytest.mark.asyncio
    async def test_reports_live_connections(self, client, presence):
        presence.connect(1, UserRole.STUDENT)
        presence.connect(1, UserRole.STUDENT)

        response = await client.get("/health")

        data = response.json()
        assert data["status"] == "healthy"
        assert data["connectedUsers"] == 1
        assert data["sessions"] == 2
