"""FastAPI dependencies for the per-process services created in the lifespan."""

from fastapi import Request

from core.notifications.dispatcher import FanoutService
from core.notifications.remote import Notifier


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_fanout_service(request: Request) -> FanoutService:
    return request.app.state.fanout
