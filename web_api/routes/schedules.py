"""
Schedule (recurring venue booking) routes.

Endpoints:
- POST   /api/schedules              - Book a slot (lecturer of the course or admin)
- GET    /api/schedules              - Filtered, paginated listing
- GET    /api/schedules/my-schedule  - Caller's own timetable
- GET    /api/schedules/{id}         - One schedule
- PUT    /api/schedules/{id}         - Move or change a slot
- DELETE /api/schedules/{id}         - Remove a slot
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core import schedules as schedule_service
from core.notifications.remote import Notifier
from web_api.auth import get_current_user
from web_api.dependencies import get_notifier
from web_api.schemas import CamelModel

router = APIRouter(prefix="/api/schedules", tags=["schedules"])


class ScheduleCreate(CamelModel):
    venue_id: int
    course_id: int
    day_of_week: str
    start_time: str
    end_time: str
    semester: str


class ScheduleUpdate(CamelModel):
    venue_id: int | None = None
    course_id: int | None = None
    day_of_week: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    semester: str | None = None


@router.post("", status_code=201)
async def create_schedule(
    body: ScheduleCreate,
    user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    schedule = await schedule_service.create_schedule(user, body.model_dump(), notifier)
    return {"success": True, "data": schedule}


@router.get("")
async def list_schedules(
    venue_id: int | None = Query(None, alias="venueId"),
    lecturer_id: int | None = Query(None, alias="lecturerId"),
    day_of_week: str | None = Query(None, alias="dayOfWeek"),
    semester: str | None = None,
    course_id: int | None = Query(None, alias="courseId"),
    course_code: str | None = Query(None, alias="courseCode"),
    page: int = Query(1, ge=1),
    limit: int = Query(schedule_service.DEFAULT_PAGE_SIZE, ge=1),
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    result = await schedule_service.list_schedules(
        venue_id=venue_id,
        lecturer_id=lecturer_id,
        day_of_week=day_of_week,
        semester=semester,
        course_id=course_id,
        course_code=course_code,
        page=page,
        limit=limit,
    )
    return {"success": True, **result}


@router.get("/my-schedule")
async def get_my_schedule(user: dict = Depends(get_current_user)) -> dict[str, Any]:
    return {"success": True, "data": await schedule_service.get_my_schedule(user)}


@router.get("/{schedule_id}")
async def get_schedule(
    schedule_id: int,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    return {"success": True, "data": await schedule_service.get_schedule(schedule_id)}


@router.put("/{schedule_id}")
async def update_schedule(
    schedule_id: int,
    body: ScheduleUpdate,
    user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    schedule = await schedule_service.update_schedule(
        user, schedule_id, body.model_dump(exclude_unset=True), notifier
    )
    return {"success": True, "data": schedule}


@router.delete("/{schedule_id}")
async def delete_schedule(
    schedule_id: int,
    user: dict = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    await schedule_service.delete_schedule(user, schedule_id, notifier)
    return {"success": True, "message": "Schedule deleted successfully"}
