"""Auth API layer -- re-exports the backend contract and HTTP client."""

from authsession.api.backend import AuthBackend, HttpAuthBackend
from authsession.api.client import ApiClient, ApiResponse, ApiResult

__all__ = ["ApiClient", "ApiResponse", "ApiResult", "AuthBackend", "HttpAuthBackend"]
