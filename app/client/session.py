"""Client session state machine: persisted tokens, login/register/logout flows and route gating."""

import enum
import logging
from collections.abc import Callable
from typing import NamedTuple

import httpx
from pydantic import ValidationError

from app.client.api import ApiClientError, AuthAPI
from app.client.storage import REFRESH_TOKEN_KEY, TOKEN_KEY, USER_KEY, TokenStorage
from app.schemas.auth import AuthResult
from app.schemas.user import UserOut

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
REGISTER_PATH = "/register"
DASHBOARD_PATH = "/dashboard"
AUTH_PAGES = frozenset({LOGIN_PATH, REGISTER_PATH})
DEFAULT_PROTECTED_PREFIXES = (DASHBOARD_PATH, "/profile", "/users")

# API paths whose 401 means "wrong credentials", not "session expired".
_CREDENTIAL_ENDPOINTS = ("/auth/login", "/auth/register")


class AuthStatus(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"


class RouteDecision(NamedTuple):
    """What a route gate does: "render", "redirect" (to target) or "wait" while loading."""

    action: str
    target: str | None = None


Listener = Callable[["SessionManager"], None]
Navigator = Callable[[str], None]


class SessionManager:
    """
    Holds the authentication state of one client.

    Tokens and the cached user live in a TokenStorage. Any 401 received while
    the client is not on an auth page clears the session and navigates to
    the login page.
    """

    def __init__(
        self,
        api: AuthAPI,
        storage: TokenStorage,
        navigate: Navigator | None = None,
        protected_prefixes: tuple[str, ...] = DEFAULT_PROTECTED_PREFIXES,
    ) -> None:
        self.api = api
        self.storage = storage
        self._navigate = navigate
        self.protected_prefixes = protected_prefixes
        self.status = AuthStatus.UNAUTHENTICATED
        self.user: UserOut | None = None
        self.current_path = "/"
        self._listeners: list[Listener] = []
        api.on_unauthorized = self._on_unauthorized

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.status is AuthStatus.LOADING

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def navigate(self, path: str) -> None:
        self.current_path = path
        if self._navigate is not None:
            self._navigate(path)

    def _set_state(self, status: AuthStatus, user: UserOut | None) -> None:
        self.status = status
        self.user = user
        for listener in list(self._listeners):
            listener(self)

    def _cached_user(self) -> UserOut | None:
        raw = self.storage.get(USER_KEY)
        if raw is None:
            return None
        return UserOut.model_validate_json(raw)

    async def start(self) -> AuthStatus:
        """Restore a stored session and confirm it with the server (GET /auth/me)."""
        if not self.storage.get(TOKEN_KEY):
            self._set_state(AuthStatus.UNAUTHENTICATED, None)
            return self.status
        try:
            cached = self._cached_user()
        except ValidationError:
            logger.warning("Stored user data is corrupted; clearing session")
            self.storage.clear()
            self._set_state(AuthStatus.UNAUTHENTICATED, None)
            return self.status

        self._set_state(AuthStatus.LOADING, cached)
        try:
            user = await self.api.me()
        except ApiClientError as e:
            server_down = e.status_code is None or e.status_code >= 500
            if not server_down:
                self._clear_session()
            elif cached is not None:
                # Server unreachable or failing: keep the cached session.
                logger.info("Session check failed; using cached user", extra={"reason": e.message})
                self._set_state(AuthStatus.AUTHENTICATED, cached)
            else:
                self._set_state(AuthStatus.UNAUTHENTICATED, None)
            return self.status

        self.storage.set(USER_KEY, user.model_dump_json(by_alias=True))
        self._set_state(AuthStatus.AUTHENTICATED, user)
        return self.status

    async def login(self, email: str, password: str) -> UserOut:
        """Log in, persist the session and go to the dashboard. Errors propagate to the caller."""
        result = await self.api.login(email, password)
        return self._establish(result)

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        confirm_password: str | None = None,
    ) -> UserOut:
        result = await self.api.register(
            email, password, first_name, last_name, confirm_password=confirm_password
        )
        return self._establish(result)

    async def logout(self, notify_server: bool = True) -> None:
        """Clear the local session and go to the login page. The server call is best effort."""
        if notify_server and self.storage.get(TOKEN_KEY):
            try:
                await self.api.logout()
            except ApiClientError as e:
                logger.info("Server logout failed", extra={"reason": e.message})
        self._clear_session()

    async def refresh(self) -> None:
        """Swap the stored refresh token for a new pair; the session ends if that fails."""
        refresh_token = self.storage.get(REFRESH_TOKEN_KEY)
        if not refresh_token:
            raise ApiClientError("No token to refresh")
        try:
            pair = await self.api.refresh(refresh_token)
        except ApiClientError:
            self._clear_session()
            raise
        self.storage.set(TOKEN_KEY, pair.access_token)
        self.storage.set(REFRESH_TOKEN_KEY, pair.refresh_token)

    def resolve_route(self, path: str) -> RouteDecision:
        """Protected pages need a session; login/register pages are for anonymous users only."""
        if self.is_loading:
            return RouteDecision("wait")
        if path in AUTH_PAGES:
            if self.is_authenticated:
                return RouteDecision("redirect", DASHBOARD_PATH)
            return RouteDecision("render")
        if self._is_protected(path) and not self.is_authenticated:
            return RouteDecision("redirect", LOGIN_PATH)
        return RouteDecision("render")

    def _is_protected(self, path: str) -> bool:
        return any(
            path == prefix or path.startswith(prefix.rstrip("/") + "/")
            for prefix in self.protected_prefixes
        )

    def _establish(self, result: AuthResult) -> UserOut:
        self.storage.set(TOKEN_KEY, result.access_token)
        self.storage.set(REFRESH_TOKEN_KEY, result.refresh_token)
        self.storage.set(USER_KEY, result.user.model_dump_json(by_alias=True))
        self._set_state(AuthStatus.AUTHENTICATED, result.user)
        self.navigate(DASHBOARD_PATH)
        return result.user

    def _clear_session(self) -> None:
        self.storage.clear()
        self._set_state(AuthStatus.UNAUTHENTICATED, None)
        if self.current_path not in AUTH_PAGES:
            self.navigate(LOGIN_PATH)

    async def _on_unauthorized(self, response: httpx.Response) -> None:
        if self.current_path in AUTH_PAGES:
            return
        if response.request.url.path.endswith(_CREDENTIAL_ENDPOINTS):
            return
        logger.info("Received 401; ending session", extra={"path": response.request.url.path})
        self._clear_session()
