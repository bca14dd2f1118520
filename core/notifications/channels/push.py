"""Expo mobile push delivery channel."""

import logging
import re

import httpx

from core.config import get_expo_access_token, get_expo_push_url

logger = logging.getLogger(__name__)

EXPO_TOKEN_PATTERN = re.compile(r"^Expo(nent)?PushToken\[.+\]$")

PUSH_TIMEOUT_SECONDS = 10.0


def is_valid_push_token(token: str | None) -> bool:
    """Check that a token looks like an Expo push token."""
    return bool(token) and EXPO_TOKEN_PATTERN.match(token) is not None


async def send_push(
    token: str,
    body: str,
    data: dict | None = None,
    title: str | None = None,
) -> bool:
    """
    Send a push notification through the Expo push service.

    Args:
        token: Expo push token of the recipient device
        body: Notification body text
        data: Extra payload delivered to the app
        title: Optional notification title

    Returns:
        True if Expo accepted the message, False otherwise
    """
    if not is_valid_push_token(token):
        logger.warning(f"Skipping push: invalid Expo push token {token!r}")
        return False

    message = {"to": token, "body": body, "sound": "default", "data": data or {}}
    if title:
        message["title"] = title

    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    access_token = get_expo_access_token()
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"

    try:
        async with httpx.AsyncClient(timeout=PUSH_TIMEOUT_SECONDS) as client:
            response = await client.post(
                get_expo_push_url(), json=message, headers=headers
            )

        if response.status_code != 200:
            logger.warning(
                f"Expo push rejected with HTTP {response.status_code}: {response.text}"
            )
            return False

        ticket = response.json().get("data") or {}
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else {}
        if ticket.get("status") == "error":
            logger.warning(f"Expo push error: {ticket.get('message')}")
            return False
        return True

    except Exception as e:
        logger.warning(f"Failed to send push notification: {e}")
        return False
