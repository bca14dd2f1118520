"""
Service-to-service routes.

Endpoints:
- POST /internal/fanout - Execute a fan-out request sent by another service
"""

import secrets
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException

from core.config import get_internal_service_token, is_dev_mode
from core.notifications.dispatcher import FanoutService
from core.notifications.targets import FanoutRequest
from web_api.dependencies import get_fanout_service

router = APIRouter(prefix="/internal", tags=["internal"])


def verify_internal_token(
    x_internal_token: str | None = Header(None, alias="X-Internal-Token"),
) -> None:
    """Only callers holding the shared service token may trigger fan-out."""
    expected = get_internal_service_token()
    if expected is None:
        if is_dev_mode():
            return
        raise HTTPException(503, "Internal service token not configured")
    if not x_internal_token or not secrets.compare_digest(x_internal_token, expected):
        raise HTTPException(401, "Invalid internal service token")


@router.post("/fanout", dependencies=[Depends(verify_internal_token)])
async def fanout(
    request: FanoutRequest,
    service: FanoutService = Depends(get_fanout_service),
) -> dict[str, Any]:
    summary = await service.deliver(request)
    return {"success": True, "data": summary}
