"""
APScheduler-based retry of failed remote fan-out calls.

Only used when FANOUT_RETRY_ENABLED is set. Jobs carry the serialized
FanoutRequest and live in memory: a retry pending at shutdown is lost,
which keeps the overall guarantee at "best effort".
"""

import logging
import random
import uuid
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import get_fanout_max_retries

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None

MAX_RETRY_DELAY_SECONDS = 300


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def init_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the APScheduler.

    Call this during app startup (in FastAPI lifespan).
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 300,
        },
    )
    _scheduler.start()
    logger.info("Fan-out retry scheduler started")
    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Fan-out retry scheduler stopped")


# =============================================================================
# Fan-out retries
# =============================================================================


def get_retry_delay(attempt: int, include_jitter: bool = True) -> float:
    """
    Calculate retry delay using exponential backoff with cap.

    Args:
        attempt: Zero-based attempt number (0 = first retry)
        include_jitter: Add random jitter to prevent thundering herd

    Returns:
        Delay in seconds (1, 2, 4, ... 256, 300, 300...)
    """
    base_delay = min(2**attempt, MAX_RETRY_DELAY_SECONDS)
    if include_jitter:
        jitter = random.uniform(0, min(base_delay * 0.1, 60))
        return base_delay + jitter
    return float(base_delay)


def schedule_fanout_retry(
    payload: dict,
    attempt: int,
    job_id: str | None = None,
) -> None:
    """
    Schedule another delivery attempt of a serialized fan-out request.

    Args:
        payload: FanoutRequest as sent over the wire
        attempt: Zero-based number of retries already made
        job_id: Stable job ID across attempts of the same request
    """
    if not _scheduler:
        logger.warning("Scheduler not available, cannot retry fan-out")
        return

    delay = get_retry_delay(attempt)
    run_at = datetime.now(timezone.utc) + timedelta(seconds=delay)
    job_id = job_id or f"fanout_retry_{uuid.uuid4().hex}"

    _scheduler.add_job(
        _execute_fanout_retry,
        trigger="date",
        run_date=run_at,
        id=job_id,
        replace_existing=True,
        kwargs={"payload": payload, "attempt": attempt + 1, "job_id": job_id},
    )
    logger.info(f"Scheduled fan-out retry in {delay:.1f}s (attempt {attempt + 1})")


async def _execute_fanout_retry(payload: dict, attempt: int, job_id: str) -> None:
    """
    Execute a fan-out retry. Called by APScheduler.

    If the call fails again, schedules another retry (up to FANOUT_MAX_RETRIES).
    """
    import sentry_sdk

    from core.notifications.remote import post_fanout

    try:
        await post_fanout(payload)
        logger.info(f"Fan-out retry succeeded on attempt {attempt}")
    except Exception as e:
        max_retries = get_fanout_max_retries()
        if attempt >= max_retries:
            logger.error(
                f"Fan-out {payload.get('type')} exceeded max retries ({max_retries}), giving up: {e}"
            )
            sentry_sdk.capture_message(
                f"Fan-out permanently failed after {max_retries} attempts: {payload.get('type')}"
            )
            return
        logger.warning(f"Fan-out retry {attempt} failed: {e}")
        schedule_fanout_retry(payload, attempt, job_id=job_id)
