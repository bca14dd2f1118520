"""
Core business logic - transport-agnostic.
Used by the web API, the WebSocket endpoint and the internal fan-out route.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine

# Errors
from .errors import (
    DomainError, ValidationError, ConflictError, NotFoundError,
    AuthorizationError, AuthenticationError,
)

# Conflict detection
from .conflicts import Slot, intervals_overlap, find_conflict, would_conflict, find_all_conflicts

__all__ = [
    'get_connection', 'get_transaction', 'get_engine', 'close_engine',
    'DomainError', 'ValidationError', 'ConflictError', 'NotFoundError',
    'AuthorizationError', 'AuthenticationError',
    'Slot', 'intervals_overlap', 'find_conflict', 'would_conflict', 'find_all_conflicts',
]
