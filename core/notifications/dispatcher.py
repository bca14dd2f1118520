"""
Fan-out owner - turns a FanoutRequest into stored records, live events and pushes.

Order of delivery for one request:
    1. Resolve recipients and write their notification records (one transaction)
    2. Emit `notification` to each recipient's user room
    3. Push to recipients with no live session and a registered push token
    4. Emit the request's attached room events

Steps 2-4 run only after the records are committed and are best-effort.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from core.database import get_transaction
from core.notifications.channels.push import is_valid_push_token, send_push
from core.notifications.presence import PresenceRouter
from core.notifications.recipients import fan_out
from core.notifications.store import serialize_notification
from core.notifications.targets import FanoutRequest
from core.notifications.templates import get_push_title
from core.notifications.urls import absolute_url
from core.queries.users import get_push_tokens

logger = logging.getLogger(__name__)

PushSender = Callable[..., Awaitable[bool]]


class FanoutService:
    """Executes fan-out requests against the store, presence router and push channel."""

    def __init__(
        self,
        presence: PresenceRouter,
        push_sender: PushSender = send_push,
    ):
        self.presence = presence
        self._push = push_sender

    async def deliver(self, request: FanoutRequest) -> dict:
        """
        Deliver one logical notification event.

        Returns:
            {"recipients": records written, "live": live notification
            frames queued, "pushed": pushes accepted}
        """
        records, tokens = [], {}
        if request.target is not None:
            async with get_transaction() as conn:
                records = await fan_out(
                    conn, request.target, request.type, request.message, request.link
                )
                offline = [
                    record["user_id"]
                    for record in records
                    if not self.presence.is_online(record["user_id"])
                ]
                tokens = await get_push_tokens(conn, offline)

        live = 0
        for record in records:
            live += self.presence.send_notification(
                record["user_id"], serialize_notification(record)
            )

        pushed = await self._push_offline(request, records, tokens)

        for event in request.events:
            self.presence.emit_to_rooms(event.rooms, event.event, event.data)

        logger.info(
            f"Delivered {request.describe()}: {len(records)} stored, "
            f"{live} live, {pushed} pushed"
        )
        return {"recipients": len(records), "live": live, "pushed": pushed}

    async def _push_offline(
        self,
        request: FanoutRequest,
        records: list[dict],
        tokens: dict[int, str],
    ) -> int:
        """Push to offline recipients; one failed push never affects another."""
        by_user = {record["user_id"]: record for record in records}
        targets = [
            (user_id, token)
            for user_id, token in tokens.items()
            if is_valid_push_token(token)
        ]
        if not targets:
            return 0

        title = get_push_title(request.type)
        results = await asyncio.gather(
            *(
                self._push(
                    token,
                    request.message,
                    data={
                        "type": request.type.value,
                        "link": request.link,
                        "url": absolute_url(request.link),
                        "notificationId": by_user[user_id]["notification_id"],
                    },
                    title=title,
                )
                for user_id, token in targets
            ),
            return_exceptions=True,
        )

        pushed = 0
        for (user_id, _), result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f"Push to user {user_id} raised: {result}")
            elif result:
                pushed += 1
        return pushed
