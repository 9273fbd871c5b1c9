"""Pydantic v2 model for the access/refresh token bundle."""

from __future__ import annotations

import base64
import hashlib
import json
from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def decode_jwt(token: str) -> dict | None:
    """Decode the payload of a JWT **without** verifying the signature.

    Returns ``None`` if the token cannot be decoded.
    """
    try:
        payload = token.split(".")[1]
        # Pad to a multiple of 4 for base64 decoding.
        payload += "=" * (-len(payload) % 4)
        decoded = json.loads(base64.urlsafe_b64decode(payload))
    except Exception:
        return None
    return decoded if isinstance(decoded, dict) else None


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC ``datetime``.

    Naive timestamps are taken as UTC.  Returns ``None`` for a missing or
    unparseable value, or one whose UTC equivalent falls outside the
    ``datetime`` range.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


class TokenPair(BaseModel):
    """Access/refresh token bundle as returned by the auth endpoints.

    Field names follow Python conventions; the camelCase wire names used by
    the backend (``accessToken``, ``accessTokenExpiresAt`` ...) are accepted
    as aliases and used when serialising ``by_alias``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_token: str = Field(
        validation_alias=AliasChoices("accessToken", "access_token", "access"),
        serialization_alias="accessToken",
    )
    access_expires_at: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "accessTokenExpiresAt", "accessExpiresAt", "access_expires_at"
        ),
        serialization_alias="accessTokenExpiresAt",
    )
    refresh_token: str = Field(
        validation_alias=AliasChoices("refreshToken", "refresh_token", "refresh"),
        serialization_alias="refreshToken",
    )
    refresh_expires_at: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "refreshTokenExpiresAt", "refreshExpiresAt", "refresh_expires_at"
        ),
        serialization_alias="refreshTokenExpiresAt",
    )

    def access_deadline(self) -> datetime | None:
        """Return when the access token expires, or ``None`` for no deadline.

        An explicit ``access_expires_at`` always wins, even when it cannot be
        parsed.  Only when it is absent do we fall back to the ``exp`` claim
        of the access token itself.
        """
        if self.access_expires_at is not None:
            return parse_timestamp(self.access_expires_at)
        claims = decode_jwt(self.access_token)
        if not claims or not isinstance(claims.get("exp"), (int, float)):
            return None
        try:
            return datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    def refresh_deadline(self) -> datetime | None:
        """Return when the refresh token expires, or ``None``."""
        return parse_timestamp(self.refresh_expires_at)

    @property
    def fingerprint(self) -> str:
        """Short, non-reversible identifier safe to put in log lines."""
        return hashlib.sha256(self.access_token.encode()).hexdigest()[:8]

    def __repr__(self) -> str:
        return (
            f"TokenPair(fingerprint={self.fingerprint!r}, "
            f"access_expires_at={self.access_expires_at!r})"
        )

    __str__ = __repr__
