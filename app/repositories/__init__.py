"""Data-access layer: repositories bound to an injected SQLAlchemy session."""

from app.repositories.user import UserRepository

__all__ = ["UserRepository"]
