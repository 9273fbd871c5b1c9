"""Errors raised by :class:`~authsession.session.manager.SessionManager`.

All of them are recoverable by the caller; the worst outcome of any of
them is that the session ends up logged out.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for session manager failures."""

    default_message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyAuthenticatedError(AuthError):
    """Raised by ``login()`` when a user is already logged in."""

    default_message = "User is already logged in"


class NotAuthenticatedError(AuthError):
    """Raised by ``logout()``/``refresh()`` when nobody is logged in."""

    default_message = "No user is logged in"


class LoginRejectedError(AuthError):
    """The backend refused the credentials, or could not be reached."""

    default_message = "Login rejected"


class IdentityFetchError(AuthError):
    """Tokens were issued but the current user could not be loaded."""

    default_message = "Error fetching user info"


class RefreshFailedError(AuthError):
    """The refresh token was rejected; the session has been cleared."""

    default_message = "Failed to refresh token"


class SessionDisposedError(AuthError):
    """The manager was disposed before or during the operation."""

    default_message = "Session manager has been disposed"
