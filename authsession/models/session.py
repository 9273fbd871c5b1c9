"""Immutable snapshot of the session: who is logged in, with which tokens."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

from .tokens import TokenPair
from .user import UserIdentity


class SessionStatus(str, Enum):
    UNRESOLVED = "unresolved"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class SessionState(BaseModel):
    """Tagged union over the three reachable session shapes.

    * ``UNRESOLVED``: nothing has settled yet; user and tokens are unknown.
    * ``AUTHENTICATED``: user and tokens are both set.
    * ``UNAUTHENTICATED``: user and tokens are both absent.

    Any other combination is rejected at construction, so a user without
    tokens (or the reverse) can never be observed.  Use the
    :meth:`unresolved`, :meth:`authenticated` and :meth:`unauthenticated`
    constructors rather than building instances by hand.
    """

    model_config = ConfigDict(frozen=True)

    status: SessionStatus
    user: UserIdentity | None = None
    tokens: TokenPair | None = None

    @model_validator(mode="after")
    def _check_pairing(self) -> "SessionState":
        if self.status is SessionStatus.AUTHENTICATED:
            if self.user is None or self.tokens is None:
                raise ValueError("an authenticated session needs both user and tokens")
        elif self.user is not None or self.tokens is not None:
            raise ValueError(f"a {self.status.value} session cannot carry user or tokens")
        return self

    @classmethod
    def unresolved(cls) -> "SessionState":
        return cls(status=SessionStatus.UNRESOLVED)

    @classmethod
    def unauthenticated(cls) -> "SessionState":
        return cls(status=SessionStatus.UNAUTHENTICATED)

    @classmethod
    def authenticated(cls, user: UserIdentity, tokens: TokenPair) -> "SessionState":
        return cls(status=SessionStatus.AUTHENTICATED, user=user, tokens=tokens)

    @property
    def is_resolved(self) -> bool:
        return self.status is not SessionStatus.UNRESOLVED

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED
