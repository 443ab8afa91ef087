"""Session memory for conversational context."""

from .models import (
    Session,
    Interaction,
    ClientContext,
    ServiceContext,
    SessionStats,
    SessionSnapshot,
)
from .session_store import SessionStore
from .reference_resolver import ReferenceResolver

__all__ = [
    "Session",
    "Interaction",
    "ClientContext",
    "ServiceContext",
    "SessionStats",
    "SessionSnapshot",
    "SessionStore",
    "ReferenceResolver",
]
