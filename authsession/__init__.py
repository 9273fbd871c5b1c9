"""authsession -- async login/logout/refresh session manager."""

from authsession.api import AuthBackend, HttpAuthBackend
from authsession.models import Credentials, SessionState, SessionStatus, TokenPair, UserIdentity
from authsession.session import (
    AlreadyAuthenticatedError,
    AuthError,
    IdentityFetchError,
    LoginRejectedError,
    NotAuthenticatedError,
    RefreshFailedError,
    SessionDisposedError,
    SessionManager,
    SessionStore,
)

__version__ = "0.1.0"

__all__ = [
    "AlreadyAuthenticatedError",
    "AuthBackend",
    "AuthError",
    "Credentials",
    "HttpAuthBackend",
    "IdentityFetchError",
    "LoginRejectedError",
    "NotAuthenticatedError",
    "RefreshFailedError",
    "SessionDisposedError",
    "SessionManager",
    "SessionState",
    "SessionStatus",
    "SessionStore",
    "TokenPair",
    "UserIdentity",
]
