"""
Domain errors raised by the scheduling and notification layers.

Each error carries the HTTP status the web layer should answer with, so
routes can let them propagate to the exception handler in web_api.errors.
"""


class DomainError(Exception):
    """Base class for errors that block a write and are reported to the caller."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed time, day, or missing required field."""

    status_code = 400


class ConflictError(DomainError):
    """Candidate slot overlaps an existing slot for the same venue and day."""

    status_code = 409

    def __init__(
        self,
        message: str = "This time slot is already booked for this venue",
        conflicting_schedule_id: int | None = None,
    ):
        super().__init__(message)
        self.conflicting_schedule_id = conflicting_schedule_id


class NotFoundError(DomainError):
    """Venue, course, schedule or notification does not exist (or is not the caller's)."""

    status_code = 404


class AuthorizationError(DomainError):
    """Caller's role or ownership does not permit the write."""

    status_code = 403


class AuthenticationError(DomainError):
    """Missing or invalid identity credential."""

    status_code = 401


class DownstreamNotifyError(Exception):
    """
    A fan-out call to the notification owner failed.

    Never surfaced to the caller of the triggering mutation: notifiers log
    it and drop it.
    """
