"""Tests for the Expo push channel."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.notifications.channels.push import is_valid_push_token, send_push

TOKEN = "ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]"


def mock_expo(status_code: int = 200, body: dict | None = None, side_effect=None):
    response = MagicMock(status_code=status_code, text="")
    response.json.return_value = body if body is not None else {"data": {"status": "ok"}}
    client = MagicMock()
    client.post = AsyncMock(return_value=response, side_effect=side_effect)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return MagicMock(return_value=client), client


class TestIsValidPushToken:
    @pytest.mark.parametrize(
        "token",
        ["ExponentPushToken[abc]", "ExpoPushToken[abc-123]"],
    )
    def test_valid(self, token):
        assert is_valid_push_token(token)

    @pytest.mark.parametrize(
        "token",
        [None, "", "abc", "ExponentPushToken[]", "FcmToken[abc]"],
    )
    def test_invalid(self, token):
        assert not is_valid_push_token(token)


class TestSendPush:
    @pytest.mark.asyncio
    async def test_sends_message(self, monkeypatch):
        monkeypatch.delenv("EXPO_ACCESS_TOKEN", raising=False)
        factory, client = mock_expo()
        with patch("core.notifications.channels.push.httpx.AsyncClient", factory):
            ok = await send_push(TOKEN, "Schedule updated", data={"type": "X"}, title="Hi")

        assert ok is True
        message = client.post.call_args.kwargs["json"]
        assert message == {
            "to": TOKEN,
            "body": "Schedule updated",
            "sound": "default",
            "data": {"type": "X"},
            "title": "Hi",
        }
        assert "Authorization" not in client.post.call_args.kwargs["headers"]

    @pytest.mark.asyncio
    async def test_uses_access_token_when_configured(self, monkeypatch):
        monkeypatch.setenv("EXPO_ACCESS_TOKEN", "expo-secret")
        factory, client = mock_expo()
        with patch("core.notifications.channels.push.httpx.AsyncClient", factory):
            await send_push(TOKEN, "body")

        headers = client.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer expo-secret"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        factory, _ = mock_expo(status_code=500)
        with patch("core.notifications.channels.push.httpx.AsyncClient", factory):
            assert await send_push(TOKEN, "body") is False

    @pytest.mark.asyncio
    async def test_error_ticket(self):
        factory, _ = mock_expo(
            body={"data": [{"status": "error", "message": "DeviceNotRegistered"}]}
        )
        with patch("core.notifications.channels.push.httpx.AsyncClient", factory):
            assert await send_push(TOKEN, "body") is False

    @pytest.mark.asyncio
    async def test_network_failure_returns_false(self):
        factory, _ = mock_expo(side_effect=ConnectionError("no route"))
        with patch("core.notifications.channels.push.httpx.AsyncClient", factory):
            assert await send_push(TOKEN, "body") is False

    @pytest.mark.asyncio
    async def test_invalid_token_skips_http(self):
        factory, client = mock_expo()
        with patch("core.notifications.channels.push.httpx.AsyncClient", factory):
            assert await send_push("garbage", "body") is False
        client.post.assert_not_called()
