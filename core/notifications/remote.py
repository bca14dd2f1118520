"""
Notifiers - how a mutating process hands fan-out requests to the fan-out owner.

LocalNotifier   fan-out runs in this process, through the FanoutQueue
RemoteNotifier  fan-out runs in the notification service, over HTTP

notify() never raises. A lost fan-out never rolls back the mutation that
triggered it; clients reconcile by listing their notifications.
"""

import logging
from typing import Protocol

import httpx
import sentry_sdk

from core.config import (
    get_internal_service_token,
    get_notification_service_url,
    get_notify_timeout,
    is_fanout_retry_enabled,
)
from core.errors import DownstreamNotifyError
from core.notifications.bus import FanoutQueue
from core.notifications.targets import FanoutRequest

logger = logging.getLogger(__name__)

FANOUT_PATH = "/internal/fanout"
INTERNAL_TOKEN_HEADER = "X-Internal-Token"


class Notifier(Protocol):
    async def notify(self, request: FanoutRequest) -> None: ...


class LocalNotifier:
    """Queues requests for the in-process FanoutWorker."""

    def __init__(self, queue: FanoutQueue):
        self._queue = queue

    async def notify(self, request: FanoutRequest) -> None:
        if self._queue.put(request):
            logger.debug(f"Queued {request.describe()}")


async def post_fanout(
    payload: dict,
    base_url: str | None = None,
    token: str | None = None,
    timeout: float | None = None,
) -> None:
    """
    POST a serialized fan-out request to the notification service.

    Raises:
        DownstreamNotifyError: On connection failure, timeout or non-2xx answer
    """
    base_url = base_url or get_notification_service_url()
    if not base_url:
        raise DownstreamNotifyError("NOTIFICATION_SERVICE_URL is not configured")

    headers = {}
    token = token or get_internal_service_token()
    if token:
        headers[INTERNAL_TOKEN_HEADER] = token

    try:
        async with httpx.AsyncClient(timeout=timeout or get_notify_timeout()) as client:
            response = await client.post(
                f"{base_url}{FANOUT_PATH}", json=payload, headers=headers
            )
    except httpx.HTTPError as e:
        raise DownstreamNotifyError(f"Fan-out call failed: {e!r}") from e

    if not 200 <= response.status_code < 300:
        raise DownstreamNotifyError(
            f"Fan-out call returned HTTP {response.status_code}"
        )


class RemoteNotifier:
    """Sends requests to the notification service; at most one attempt by default."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float | None = None,
        retry_enabled: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.retry_enabled = retry_enabled

    async def notify(self, request: FanoutRequest) -> None:
        payload = request.model_dump(mode="json", by_alias=True)
        try:
            await post_fanout(payload, self.base_url, self.token, self.timeout)
            logger.debug(f"Sent {request.describe()} to {self.base_url}")
        except Exception as e:
            logger.error(f"Remote fan-out failed for {request.describe()}: {e}")
            sentry_sdk.capture_exception(e)
            if self.retry_enabled:
                from core.notifications.scheduler import schedule_fanout_retry

                schedule_fanout_retry(payload, attempt=0)


def build_notifier(queue: FanoutQueue) -> Notifier:
    """Remote when a notification service is configured, local otherwise."""
    base_url = get_notification_service_url()
    if base_url:
        logger.info(f"Fan-out goes to notification service at {base_url}")
        return RemoteNotifier(
            base_url,
            token=get_internal_service_token(),
            timeout=get_notify_timeout(),
            retry_enabled=is_fanout_retry_enabled(),
        )
    return LocalNotifier(queue)
