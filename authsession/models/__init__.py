"""Re-export all session data models for convenient access."""

from authsession.models.session import SessionState, SessionStatus
from authsession.models.tokens import TokenPair, decode_jwt, parse_timestamp
from authsession.models.user import Credentials, UserIdentity

__all__ = [
    # Session models
    "SessionState",
    "SessionStatus",
    # Token models
    "TokenPair",
    "decode_jwt",
    "parse_timestamp",
    # User models
    "Credentials",
    "UserIdentity",
]
