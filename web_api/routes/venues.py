"""
Venue routes.

Endpoints:
- GET /api/venues/{id} - One venue
- PUT /api/venues/{id} - Update a venue (admin); status changes notify lecturers
"""

from typing import Any

from fastapi import APIRouter, Depends

from core import venues as venue_service
from core.enums import VenueStatus
from core.notifications.remote import Notifier
from web_api.auth import get_current_user
from web_api.dependencies import get_notifier
from web_api.schemas import CamelModel

router = APIRouter(prefix="/api/venues", tags=["venues"])


class VenueUpdate(CamelModel):
    name: str | None = None
    building: str | None = None
    capacity: int | None = None
    facilities: list[str] | None = None
    status: VenueStatus | None = None


@router.get("/{venue_id}")
async def get_venue(
    venue_id: int,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    return {"success": True, "data": await venue_service.get_venue(venue_id)}


@router.put("/{venue_id}")
async def update_venue(
    venue_id: int,
    body: VenueUpdate,
    user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    venue = await venue_service.update_venue(
        user, venue_id, body.model_dump(exclude_unset=True), notifier
    )
    return {"success": True, "data": venue}
