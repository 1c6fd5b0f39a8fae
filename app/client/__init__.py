"""Client-side session layer: token storage, API client and session state machine."""

from app.client.api import ApiClientError, AuthAPI
from app.client.session import AuthStatus, RouteDecision, SessionManager
from app.client.storage import FileTokenStorage, MemoryTokenStorage, TokenStorage

__all__ = [
    "ApiClientError",
    "AuthAPI",
    "AuthStatus",
    "FileTokenStorage",
    "MemoryTokenStorage",
    "RouteDecision",
    "SessionManager",
    "TokenStorage",
]
