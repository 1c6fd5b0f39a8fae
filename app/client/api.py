"""Async HTTP client for the auth API, with bearer-token and 401 hooks."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from app.client.storage import TOKEN_KEY, TokenStorage
from app.schemas.auth import AuthResult, TokenPair, TokenPayload
from app.schemas.user import UserOut

logger = logging.getLogger(__name__)

UnauthorizedHandler = Callable[[httpx.Response], Awaitable[None]]


class ApiClientError(Exception):
    """Raised when the API is unreachable or answers with an error envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthAPI:
    """
    Thin wrapper over httpx.AsyncClient.

    Every request carries the stored access token; every 401 response is
    reported to on_unauthorized before the caller sees the error.
    """

    def __init__(
        self,
        base_url: str,
        storage: TokenStorage,
        api_prefix: str = "/api",
        on_unauthorized: UnauthorizedHandler | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.storage = storage
        self.api_prefix = api_prefix.rstrip("/")
        self.on_unauthorized = on_unauthorized
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
            event_hooks={
                "request": [self._attach_token],
                "response": [self._report_unauthorized],
            },
        )

    async def __aenter__(self) -> AuthAPI:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _attach_token(self, request: httpx.Request) -> None:
        token = self.storage.get(TOKEN_KEY)
        if token and "Authorization" not in request.headers:
            request.headers["Authorization"] = f"Bearer {token}"

    async def _report_unauthorized(self, response: httpx.Response) -> None:
        if response.status_code == 401 and self.on_unauthorized is not None:
            await self.on_unauthorized(response)

    async def _call(
        self,
        method: str,
        path: str,
        fallback_message: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the envelope's data; raise ApiClientError otherwise."""
        try:
            response = await self._client.request(method, f"{self.api_prefix}{path}", json=json)
        except httpx.TimeoutException as e:
            raise ApiClientError(f"{fallback_message}: request timed out") from e
        except httpx.HTTPError as e:
            raise ApiClientError(f"{fallback_message}: {e.__class__.__name__}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("success"):
            return body.get("data")
        message = body.get("message") or body.get("error") or fallback_message
        if response.is_success:
            message = body.get("message") or "Invalid server response"
        logger.info(
            "API call failed",
            extra={"path": path, "status": response.status_code, "reason": message},
        )
        raise ApiClientError(message, response.status_code)

    async def login(self, email: str, password: str) -> AuthResult:
        data = await self._call(
            "POST", "/auth/login", "Login failed", json={"email": email, "password": password}
        )
        return AuthResult.model_validate(_as_dict(data))

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        confirm_password: str | None = None,
    ) -> AuthResult:
        payload: dict[str, Any] = {
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
        }
        if confirm_password is not None:
            payload["confirmPassword"] = confirm_password
        data = await self._call("POST", "/auth/register", "Registration failed", json=payload)
        return AuthResult.model_validate(_as_dict(data))

    async def me(self) -> UserOut:
        data = await self._call("GET", "/auth/me", "Could not load profile")
        return UserOut.model_validate(_field(data, "user"))

    async def refresh(self, refresh_token: str) -> TokenPair:
        data = await self._call(
            "POST", "/auth/refresh", "Token refresh failed", json={"refreshToken": refresh_token}
        )
        return TokenPair.model_validate(_as_dict(data))

    async def validate(self, token: str) -> TokenPayload:
        data = await self._call(
            "POST", "/auth/validate", "Token validation failed", json={"token": token}
        )
        return TokenPayload.model_validate(_field(data, "payload"))

    async def logout(self) -> None:
        await self._call("POST", "/auth/logout", "Logout failed")


def _field(data: Any, key: str) -> Any:
    if not isinstance(data, dict) or data.get(key) is None:
        raise ApiClientError("Invalid server response")
    return data[key]


def _as_dict(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ApiClientError("Invalid server response")
    return data
