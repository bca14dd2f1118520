"""
Live presence and room-based multicast for real-time connections.

Each live connection gets a PresenceSession with its own bounded outgoing
queue. Sessions join three kinds of rooms at connect time:
    user:<id>      exactly one
    role:<ROLE>    exactly one
    course:<id>    one per course the user is enrolled in or teaches

Course membership is a snapshot taken at connect time; a user who enrolls
mid-session only gets that course's room events after reconnecting.

Emits are fire-and-forget: no acknowledgment, no retry, and nothing happens
when a room has no members. Durable delivery is the notification store's job.

One PresenceRouter is constructed per running service and passed to the
components that need it.
"""

import asyncio
import enum
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable

from core.enums import TargetAudience, UserRole
from core.notifications.targets import GLOBAL_ROOM

logger = logging.getLogger(__name__)

# Server -> client event names
EVENT_CONNECTED = "connected"
EVENT_NOTIFICATION = "notification"
EVENT_SCHEDULE_UPDATE = "schedule-update"
EVENT_NEW_ANNOUNCEMENT = "new-announcement"
EVENT_VENUE_CHANGE = "venue-change"


def user_room(user_id: int) -> str:
    return f"user:{user_id}"


def role_room(role: UserRole | str) -> str:
    return f"role:{getattr(role, 'value', role)}"


def course_room(course_id: int) -> str:
    return f"course:{course_id}"


class SessionState(str, enum.Enum):
    """
    Lifecycle of a session. Connections whose credential fails to resolve
    are rejected before a session exists, so they never appear here.
    """

    authenticated = "authenticated"
    joined = "joined"
    disconnected = "disconnected"


@dataclass
class PresenceSession:
    """One live connection."""

    session_id: str
    user_id: int
    role: UserRole
    queue: asyncio.Queue
    rooms: set[str] = field(default_factory=set)
    state: SessionState = SessionState.authenticated


class PresenceRouter:
    """Tracks live sessions, their room memberships, and multicasts to rooms."""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._sessions: dict[str, PresenceSession] = {}
        self._rooms: dict[str, set[str]] = defaultdict(set)
        self._user_sessions: dict[int, set[str]] = defaultdict(set)

    # -----------------------------------------------------------------
    # Session lifecycle
    # -----------------------------------------------------------------

    def connect(
        self,
        user_id: int,
        role: UserRole,
        course_ids: Iterable[int] = (),
    ) -> PresenceSession:
        """
        Register an authenticated connection and join its rooms.

        Args:
            user_id: Identity resolved from the connection credential
            role: The identity's role
            course_ids: Courses to follow (snapshot, not refreshed later)

        Returns:
            The joined session; read outgoing events from session.queue
        """
        session = PresenceSession(
            session_id=uuid.uuid4().hex,
            user_id=user_id,
            role=UserRole(role),
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        self._sessions[session.session_id] = session
        self._user_sessions[user_id].add(session.session_id)

        rooms = [user_room(user_id), role_room(session.role)]
        rooms.extend(course_room(course_id) for course_id in course_ids)
        for room in rooms:
            self._rooms[room].add(session.session_id)
            session.rooms.add(room)

        session.state = SessionState.joined
        logger.info(
            f"User {user_id} connected ({len(session.rooms)} rooms, "
            f"{self.session_count()} sessions total)"
        )
        return session

    def disconnect(self, session: PresenceSession) -> None:
        """Remove a session from every room and from the presence table."""
        if self._sessions.pop(session.session_id, None) is None:
            return

        for room in session.rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(session.session_id)
            if not members:
                del self._rooms[room]
        session.rooms.clear()

        user_sessions = self._user_sessions.get(session.user_id)
        if user_sessions is not None:
            user_sessions.discard(session.session_id)
            if not user_sessions:
                del self._user_sessions[session.user_id]

        session.state = SessionState.disconnected
        logger.info(
            f"User {session.user_id} disconnected ({self.session_count()} sessions total)"
        )

    def close_all(self) -> None:
        """Disconnect every session and wake their writers. Call on shutdown."""
        for session in list(self._sessions.values()):
            self.disconnect(session)
            try:
                session.queue.put_nowait(None)
            except asyncio.QueueFull:
                pass

    # -----------------------------------------------------------------
    # Queries over the live presence table
    # -----------------------------------------------------------------

    def is_online(self, user_id: int) -> bool:
        return bool(self._user_sessions.get(user_id))

    def connected_count(self) -> int:
        """Number of distinct users with at least one live session."""
        return len(self._user_sessions)

    def session_count(self) -> int:
        return len(self._sessions)

    def room_members(self, room: str) -> set[int]:
        """User IDs currently in a room."""
        return {
            self._sessions[sid].user_id
            for sid in self._rooms.get(room, ())
            if sid in self._sessions
        }

    # -----------------------------------------------------------------
    # Multicast primitives
    # -----------------------------------------------------------------

    def _deliver(self, session_ids: Iterable[str], event: str, data: Any) -> int:
        frame = {"event": event, "data": data}
        delivered = 0
        for sid in list(session_ids):
            session = self._sessions.get(sid)
            if session is None:
                continue
            try:
                session.queue.put_nowait(frame)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    f"Dropping '{event}' for user {session.user_id}: outgoing queue full"
                )
        return delivered

    def emit_to_room(self, room: str, event: str, data: Any) -> int:
        """
        Emit an event to every session in a room.

        Returns:
            Number of sessions the event was queued for (0 for an empty room)
        """
        if room == GLOBAL_ROOM:
            return self.emit_to_all(event, data)
        return self._deliver(self._rooms.get(room, ()), event, data)

    def emit_to_user(self, user_id: int, event: str, data: Any) -> int:
        return self.emit_to_room(user_room(user_id), event, data)

    def emit_to_role(self, role: UserRole | str, event: str, data: Any) -> int:
        return self.emit_to_room(role_room(role), event, data)

    def emit_to_course(self, course_id: int | None, event: str, data: Any) -> int:
        if not course_id:
            return 0
        return self.emit_to_room(course_room(course_id), event, data)

    def emit_to_all(self, event: str, data: Any) -> int:
        return self._deliver(self._sessions.keys(), event, data)

    def emit_to_rooms(self, rooms: Iterable[str], event: str, data: Any) -> int:
        """Emit once to every session in any of the rooms."""
        rooms = list(rooms)
        if GLOBAL_ROOM in rooms:
            return self.emit_to_all(event, data)
        session_ids: dict[str, None] = {}
        for room in rooms:
            session_ids.update(dict.fromkeys(self._rooms.get(room, ())))
        return self._deliver(session_ids, event, data)

    # -----------------------------------------------------------------
    # Domain broadcasts
    # -----------------------------------------------------------------

    def send_notification(self, user_id: int, notification: dict) -> int:
        """Push a stored notification record to the user's live sessions."""
        return self.emit_to_user(user_id, EVENT_NOTIFICATION, notification)

    def broadcast_schedule_update(self, payload: dict | None) -> int:
        """Schedule change -> course room, the slot's lecturer, and admins."""
        if not payload:
            return 0
        rooms = schedule_update_rooms(payload.get("courseId"), payload.get("lecturerId"))
        return self.emit_to_rooms(rooms, EVENT_SCHEDULE_UPDATE, payload)

    def broadcast_announcement(self, announcement: dict) -> int:
        """New announcement -> everyone, or the audience's role room."""
        rooms = audience_rooms(announcement.get("targetAudience", "ALL"))
        return self.emit_to_rooms(rooms, EVENT_NEW_ANNOUNCEMENT, announcement)

    def broadcast_venue_change(self, venue: dict) -> int:
        return self.emit_to_all(EVENT_VENUE_CHANGE, venue)


def audience_rooms(audience: TargetAudience | str) -> list[str]:
    """Rooms that reach an announcement audience."""
    audience = TargetAudience(audience)
    if audience == TargetAudience.STUDENTS:
        return [role_room(UserRole.STUDENT)]
    if audience == TargetAudience.LECTURERS:
        return [role_room(UserRole.LECTURER)]
    return [GLOBAL_ROOM]


def schedule_update_rooms(
    course_id: int | None,
    lecturer_id: int | None,
) -> list[str]:
    """Rooms that receive a schedule-update event."""
    rooms = []
    if course_id:
        rooms.append(course_room(course_id))
    if lecturer_id:
        rooms.append(user_room(lecturer_id))
    rooms.append(role_room(UserRole.ADMIN))
    return rooms
