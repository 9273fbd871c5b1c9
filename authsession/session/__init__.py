"""Session state machine -- store, refresh scheduler and manager."""

from authsession.session.errors import (
    AlreadyAuthenticatedError,
    AuthError,
    IdentityFetchError,
    LoginRejectedError,
    NotAuthenticatedError,
    RefreshFailedError,
    SessionDisposedError,
)
from authsession.session.manager import SessionManager
from authsession.session.scheduler import MAX_TIMER_DELAY, REFRESH_THRESHOLD, RefreshScheduler
from authsession.session.store import SessionStore

__all__ = [
    "AlreadyAuthenticatedError",
    "AuthError",
    "IdentityFetchError",
    "LoginRejectedError",
    "MAX_TIMER_DELAY",
    "NotAuthenticatedError",
    "REFRESH_THRESHOLD",
    "RefreshFailedError",
    "RefreshScheduler",
    "SessionDisposedError",
    "SessionManager",
    "SessionStore",
]
