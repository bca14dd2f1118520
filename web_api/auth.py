"""
JWT authentication utilities for the web API.

Tokens are issued elsewhere; this service only verifies them. The `sub`
claim carries the database user ID. Credentials are read from the
Authorization: Bearer header, falling back to the session cookie.
"""

import os
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Request

from core.database import get_connection
from core.errors import AuthenticationError
from core.queries.users import get_user_by_id

JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24


def _get_secret() -> str:
    secret = os.environ.get("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET environment variable not set")
    return secret


def create_jwt(user_id: int, expires_in: timedelta | None = None) -> str:
    """
    Create a signed JWT token for a user.

    Used by tests and local tooling.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + (expires_in or timedelta(hours=JWT_EXPIRATION_HOURS)),
    }
    return jwt.encode(payload, _get_secret(), algorithm=JWT_ALGORITHM)


def verify_jwt(token: str) -> dict | None:
    """
    Verify and decode a JWT token.

    Returns:
        Decoded payload dict if valid, None if invalid
    """
    try:
        return jwt.decode(token, _get_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None


def extract_token(authorization: str | None, cookie: str | None = None) -> str | None:
    """Get the raw token from an Authorization header value or session cookie."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return cookie or None


async def authenticate_token(token: str | None) -> dict | None:
    """
    Resolve a credential to the user it identifies.

    Returns:
        The users row as a dict, or None if the token is missing, invalid,
        expired, or names a user that no longer exists
    """
    if not token:
        return None
    payload = verify_jwt(token)
    if not payload:
        return None
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None

    async with get_connection() as conn:
        return await get_user_by_id(conn, user_id)


async def get_current_user(request: Request) -> dict:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        AuthenticationError: If not authenticated or the token is invalid (401)
    """
    token = extract_token(
        request.headers.get("Authorization"), request.cookies.get("session")
    )
    if not token:
        raise AuthenticationError("Not authenticated")

    user = await authenticate_token(token)
    if not user:
        raise AuthenticationError("Invalid or expired token")

    return user
