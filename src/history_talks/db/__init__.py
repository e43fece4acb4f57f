"""Database layer."""

from history_talks.db.models import Base, MessageModel, PersonaModel
from history_talks.db.session import get_session, get_session_context, init_db

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "init_db",
    # Models
    "MessageModel",
    "PersonaModel",
]
