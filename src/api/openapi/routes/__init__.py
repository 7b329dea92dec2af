"""API route handlers."""

from src.api.openapi.routes import health, notifications, storage, uploads

__all__ = [
    "health",
    "notifications",
    "storage",
    "uploads",
]
