"""Role checks on an authenticated identity (a users row as a dict)."""

from .enums import UserRole
from .errors import AuthorizationError


def role_of(identity: dict) -> UserRole:
    return UserRole(identity["role"])


def is_admin(identity: dict) -> bool:
    return role_of(identity) == UserRole.ADMIN


def require_role(identity: dict, *roles: UserRole, message: str | None = None) -> None:
    """Raise AuthorizationError unless the identity holds one of the roles."""
    if role_of(identity) not in roles:
        raise AuthorizationError(
            message or "You do not have permission to perform this action"
        )


def require_lecturer_of(identity: dict, lecturer_id: int, message: str) -> None:
    """Only the owning lecturer (or an admin) may write."""
    if is_admin(identity):
        return
    if role_of(identity) != UserRole.LECTURER or identity["user_id"] != lecturer_id:
        raise AuthorizationError(message)
