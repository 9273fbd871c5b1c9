"""Base async HTTP client for the auth API.

This is deliberately thin: it sends a request and hands back the status and
decoded body.  Non-2xx statuses are *results*, not exceptions; only
transport failures (``httpx.HTTPError``) propagate to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from loguru import logger

from ..storage.config import AppSettings

T = TypeVar("T")


@dataclass(frozen=True)
class ApiResponse:
    """Status code plus decoded JSON body (``None`` if the body was not JSON)."""

    status_code: int
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def message(self) -> str:
        """Best-effort human readable error message from the body."""
        if isinstance(self.data, dict):
            msg = self.data.get("message") or self.data.get("error_description")
            if msg:
                return str(msg)
        return f"HTTP {self.status_code}"


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Typed success/failure outcome of a backend call."""

    ok: bool
    status_code: int
    data: T | None = None
    message: str | None = None

    @classmethod
    def success(cls, data: T, status_code: int = 200) -> "ApiResult[T]":
        return cls(ok=True, status_code=status_code, data=data)

    @classmethod
    def failure(cls, message: str, status_code: int = 0) -> "ApiResult[T]":
        return cls(ok=False, status_code=status_code, message=message)


class ApiClient:
    """Async HTTP client bound to the configured API base URL.

    Example::

        async with ApiClient() as client:
            resp = await client.request("GET", "/v1/users/me")
            if resp.ok:
                ...
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or timeout is None:
            settings = AppSettings.load()
            base_url = base_url or settings["api_base_url"]
            timeout = timeout if timeout is not None else settings["request_timeout_seconds"]
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=transport
        )

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResponse:
        """Send *method* to ``base_url + path`` and decode the response.

        Raises :class:`httpx.HTTPError` on transport failures.
        """
        resp = await self._http.request(method, path, json=json, headers=headers)
        logger.debug(f"{method} {path} -> {resp.status_code}")

        # Guard against non-JSON bodies (empty 401s, HTML error pages ...)
        try:
            data = resp.json() if resp.content else None
        except ValueError:
            logger.debug(f"Non-JSON response body for {method} {path}")
            data = None
        return ApiResponse(status_code=resp.status_code, data=data)

    @staticmethod
    def bearer(access_token: str) -> dict[str, str]:
        """Build an ``Authorization`` header dict for *access_token*."""
        return {"Authorization": f"Bearer {access_token}"}

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        """Close the underlying HTTP transport."""
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
