"""
Course routes.

Endpoints:
- POST /api/courses/{id}/enroll - Enroll the calling student
"""

from typing import Any

from fastapi import APIRouter, Depends

from core.enrollment import enroll_student
from core.notifications.remote import Notifier
from web_api.auth import get_current_user
from web_api.dependencies import get_notifier

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.post("/{course_id}/enroll", status_code=201)
async def enroll(
    course_id: int,
    user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    enrollment = await enroll_student(user, course_id, notifier)
    return {"success": True, "data": enrollment}
