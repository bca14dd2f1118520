"""
Announcement routes.

Endpoints:
- POST /api/announcements               - Publish (lecturer or admin)
- POST /api/announcements/{id}/comments - Comment on an announcement
"""

from typing import Any

from fastapi import APIRouter, Depends

from core import announcements as announcement_service
from core.enums import TargetAudience
from core.notifications.remote import Notifier
from web_api.auth import get_current_user
from web_api.dependencies import get_notifier
from web_api.schemas import CamelModel

router = APIRouter(prefix="/api/announcements", tags=["announcements"])


class AnnouncementCreate(CamelModel):
    title: str
    content: str
    target_audience: TargetAudience = TargetAudience.ALL
    pinned: bool = False


class CommentCreate(CamelModel):
    content: str


@router.post("", status_code=201)
async def create_announcement(
    body: AnnouncementCreate,
    user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    announcement = await announcement_service.create_announcement(
        user, body.model_dump(), notifier
    )
    return {"success": True, "data": announcement}


@router.post("/{announcement_id}/comments", status_code=201)
async def add_comment(
    announcement_id: int,
    body: CommentCreate,
    user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    comment = await announcement_service.add_comment(
        user, announcement_id, body.content, notifier
    )
    return {"success": True, "data": comment}
