"""Tests for JWT verification and credential extraction."""

from datetime import timedelta

import pytest

from web_api.auth import authenticate_token, create_jwt, extract_token, verify_jwt


class TestVerifyJwt:
    def test_round_trip(self):
        payload = verify_jwt(create_jwt(42))
        assert payload["sub"] == "42"

    def test_expired(self):
        assert verify_jwt(create_jwt(42, expires_in=timedelta(seconds=-1))) is None

    def test_wrong_secret(self, monkeypatch):
        token = create_jwt(42)
        monkeypatch.setenv("JWT_SECRET", "another-secret-with-at-least-32-bytes")
        assert verify_jwt(token) is None


class TestExtractToken:
    @pytest.mark.parametrize(
        "authorization, cookie, expected",
        [
            ("Bearer abc", None, "abc"),
            ("bearer  abc ", None, "abc"),
            ("Basic abc", "from-cookie", "from-cookie"),
            (None, "from-cookie", "from-cookie"),
            ("Bearer ", None, None),
            (None, None, None),
        ],
    )
    def test_extract(self, authorization, cookie, expected):
        assert extract_token(authorization, cookie) == expected


class TestAuthenticateToken:
    @pytest.mark.asyncio
    async def test_resolves_user(self, seed):
        user = await authenticate_token(create_jwt(seed["student1"]["user_id"]))
        assert user["email"] == "s1@uni.test"

    @pytest.mark.asyncio
    async def test_unknown_user(self, seed):
        assert await authenticate_token(create_jwt(9999)) is None

    @pytest.mark.asyncio
    async def test_no_token(self):
        assert await authenticate_token(None) is None
