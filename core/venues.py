"""Venue reads and admin updates; status changes fan out to affected lecturers."""

import logging

from .database import get_connection, get_transaction
from .enums import NotificationType, UserRole, VenueStatus
from .errors import NotFoundError, ValidationError
from .notifications.presence import EVENT_VENUE_CHANGE
from .notifications.remote import Notifier
from .notifications.targets import DirectTarget, FanoutRequest, GLOBAL_ROOM, LiveEvent
from .notifications.templates import get_message
from .notifications.urls import build_venue_link
from .permissions import require_role
from .queries import venues as venue_queries

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "building", "capacity", "facilities", "status")


def serialize_venue(row: dict) -> dict:
    status = row["status"]
    return {
        "id": row["venue_id"],
        "name": row["name"],
        "building": row["building"],
        "capacity": row["capacity"],
        "facilities": list(row.get("facilities") or []),
        "status": getattr(status, "value", status),
    }


async def get_venue(venue_id: int) -> dict:
    async with get_connection() as conn:
        venue = await venue_queries.get_venue(conn, venue_id)
    if not venue:
        raise NotFoundError("Venue not found")
    return serialize_venue(venue)


async def update_venue(
    identity: dict,
    venue_id: int,
    changes: dict,
    notifier: Notifier,
) -> dict:
    """
    Apply an admin's changes to a venue.

    When the status changes, every lecturer holding a slot in the venue gets
    a VENUE_STATUS_CHANGE notification, and a venue-change event goes to
    every live session.
    """
    require_role(identity, UserRole.ADMIN, message="Only admins can update venues")

    updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
    if "status" in updates:
        updates["status"] = VenueStatus(updates["status"])
    if "capacity" in updates and updates["capacity"] <= 0:
        raise ValidationError("Capacity must be a positive number")

    async with get_transaction() as conn:
        current = await venue_queries.get_venue(conn, venue_id, for_update=True)
        if not current:
            raise NotFoundError("Venue not found")
        if not updates:
            return serialize_venue(current)

        updated = await venue_queries.update_venue(conn, venue_id, **updates)
        status_changed = updated["status"] != current["status"]
        lecturer_ids = (
            await venue_queries.get_lecturer_ids_for_venue(conn, venue_id)
            if status_changed
            else []
        )

    venue = serialize_venue(updated)
    if not status_changed:
        return venue

    logger.info(
        f"Venue {venue_id} status {current['status'].value} -> {venue['status']}, "
        f"notifying {len(lecturer_ids)} lecturer(s)"
    )
    message = get_message(
        NotificationType.VENUE_STATUS_CHANGE,
        {"venue_name": venue["name"], "status": venue["status"]},
    )
    link = build_venue_link(venue_id)
    events = [LiveEvent(event=EVENT_VENUE_CHANGE, data=venue, rooms=[GLOBAL_ROOM])]

    if not lecturer_ids:
        await notifier.notify(
            FanoutRequest(
                type=NotificationType.VENUE_STATUS_CHANGE,
                message=message,
                link=link,
                events=events,
            )
        )
        return venue

    # Live event rides on the first request only
    for index, lecturer_id in enumerate(lecturer_ids):
        await notifier.notify(
            FanoutRequest(
                type=NotificationType.VENUE_STATUS_CHANGE,
                message=message,
                link=link,
                target=DirectTarget(user_id=lecturer_id),
                events=events if index == 0 else [],
            )
        )
    return venue
