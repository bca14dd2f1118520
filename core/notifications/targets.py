"""
Fan-out request schema.

A FanoutRequest is the complete, serializable description of one logical
notification event: who gets it (a target strategy), what it says, and which
live room events go with it. Mutations build one and hand it to a Notifier;
the fan-out owner (possibly in another process) executes it.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.enums import NotificationType, TargetAudience

# Room name used for process-wide broadcasts
GLOBAL_ROOM = "*"


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DirectTarget(_WireModel):
    """A single explicit recipient."""

    kind: Literal["direct"] = "direct"
    user_id: int


class AudienceTarget(_WireModel):
    """Every user in a role category, minus an optional excluded user."""

    kind: Literal["audience"] = "audience"
    audience: TargetAudience
    exclude_user_id: int | None = None


class CourseRosterTarget(_WireModel):
    """Every student with an active enrollment on a course, minus exclusions."""

    kind: Literal["course_roster"] = "course_roster"
    course_id: int
    exclude_user_ids: list[int] = Field(default_factory=list)


Target = Annotated[
    Union[DirectTarget, AudienceTarget, CourseRosterTarget],
    Field(discriminator="kind"),
]


class LiveEvent(_WireModel):
    """A real-time event to multicast to rooms after the records are written."""

    event: str
    data: dict[str, Any]
    rooms: list[str]


class FanoutRequest(_WireModel):
    """
    One logical notification event.

    A request without a target stores nothing and only emits its live events.
    """

    type: NotificationType
    message: str
    link: str | None = None
    target: Target | None = None
    events: list[LiveEvent] = Field(default_factory=list)

    def describe(self) -> str:
        """Short description for log lines."""
        target = self.target
        if target is None:
            who = "live rooms only"
        elif isinstance(target, DirectTarget):
            who = f"user {target.user_id}"
        elif isinstance(target, AudienceTarget):
            who = f"audience {target.audience.value}"
        else:
            who = f"course {target.course_id} roster"
        return f"{self.type.value} -> {who}"
