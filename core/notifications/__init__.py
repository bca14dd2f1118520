"""
Notification fan-out: durable records, live delivery and mobile push.

Public API:
    FanoutRequest + targets - describe who gets what
    Notifier (LocalNotifier / RemoteNotifier) - hand a request to the fan-out owner
    FanoutService.deliver(request) - the fan-out owner
    PresenceRouter - live sessions and rooms
    fan_out(conn, target, ...) - resolve recipients and write records
"""

from .bus import FanoutQueue, FanoutWorker
from .dispatcher import FanoutService
from .presence import PresenceRouter, PresenceSession
from .recipients import fan_out, resolve
from .remote import LocalNotifier, Notifier, RemoteNotifier, build_notifier
from .targets import (
    AudienceTarget,
    CourseRosterTarget,
    DirectTarget,
    FanoutRequest,
    LiveEvent,
)

__all__ = [
    # Requests
    "FanoutRequest",
    "LiveEvent",
    "DirectTarget",
    "AudienceTarget",
    "CourseRosterTarget",
    # Delivery
    "FanoutService",
    "FanoutQueue",
    "FanoutWorker",
    "Notifier",
    "LocalNotifier",
    "RemoteNotifier",
    "build_notifier",
    "PresenceRouter",
    "PresenceSession",
    "fan_out",
    "resolve",
]
