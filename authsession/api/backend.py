"""Auth backend contract and its HTTP implementation.

:class:`AuthBackend` is the only capability the session manager needs.
Implementations return :class:`~authsession.api.client.ApiResult` for
expected outcomes (accepted or rejected) and may raise for anything else;
the manager treats both failure modes the same way.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from loguru import logger
from pydantic import ValidationError

from ..models.tokens import TokenPair
from ..models.user import UserIdentity
from .client import ApiClient, ApiResponse, ApiResult

LOGIN_PATH = "/v3/auth/login"
REFRESH_PATH = "/v3/auth/refresh"
CURRENT_USER_PATH = "/v1/users/me"


class AuthBackend(ABC):
    """The three calls the session manager makes against the auth service."""

    @abstractmethod
    async def login(self, email: str, password: str) -> ApiResult[TokenPair]:
        """Exchange credentials for a new token pair."""

    @abstractmethod
    async def refresh(self, refresh_token: str) -> ApiResult[TokenPair]:
        """Exchange a refresh token for a new token pair."""

    @abstractmethod
    async def fetch_current_user(self, access_token: str) -> ApiResult[UserIdentity]:
        """Load the identity the access token belongs to."""


def _parse_tokens(resp: ApiResponse) -> ApiResult[TokenPair]:
    if not resp.ok:
        return ApiResult.failure(resp.message, resp.status_code)
    try:
        return ApiResult.success(TokenPair.model_validate(resp.data), resp.status_code)
    except ValidationError as exc:
        logger.error(f"Malformed token response ({resp.status_code}): {exc}")
        return ApiResult.failure("Malformed token response", resp.status_code)


class HttpAuthBackend(AuthBackend):
    """:class:`AuthBackend` talking JSON over HTTP through :class:`ApiClient`.

    Owns the client unless one is passed in, in which case closing it is
    left to the caller.
    """

    def __init__(self, client: ApiClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or ApiClient()

    async def login(self, email: str, password: str) -> ApiResult[TokenPair]:
        resp = await self._client.request(
            "POST", LOGIN_PATH, json={"email": email, "password": password}
        )
        return _parse_tokens(resp)

    async def refresh(self, refresh_token: str) -> ApiResult[TokenPair]:
        resp = await self._client.request(
            "POST", REFRESH_PATH, json={"refreshToken": refresh_token}
        )
        return _parse_tokens(resp)

    async def fetch_current_user(self, access_token: str) -> ApiResult[UserIdentity]:
        resp = await self._client.request(
            "GET", CURRENT_USER_PATH, headers=ApiClient.bearer(access_token)
        )
        if not resp.ok:
            return ApiResult.failure(resp.message, resp.status_code)
        try:
            return ApiResult.success(UserIdentity.model_validate(resp.data), resp.status_code)
        except ValidationError as exc:
            logger.error(f"Malformed user response ({resp.status_code}): {exc}")
            return ApiResult.failure("Malformed user response", resp.status_code)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpAuthBackend":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
