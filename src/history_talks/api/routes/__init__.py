"""API route modules."""

from history_talks.api.routes import admin, health, messages, personas, uploads

__all__ = ["admin", "health", "messages", "personas", "uploads"]
