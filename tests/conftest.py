"""Shared fixtures: a scripted in-memory auth backend and token builders."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from authsession.api.backend import AuthBackend
from authsession.api.client import ApiResult
from authsession.models.tokens import TokenPair
from authsession.models.user import UserIdentity

FAR_FUTURE = "2124-01-01T00:00Z"

ALICE = UserIdentity(
    user_id="c0ed36c0-6c59-48d4-a168-b6076cec52a0",
    display_name="Alice",
    email="alice@example.com",
)


def make_tokens(
    access="T1",
    refresh="R1",
    expires_in: timedelta | None = None,
    now: datetime | None = None,
) -> TokenPair:
    """Token pair whose access token expires *expires_in* from *now* (far future by default)."""
    if expires_in is None:
        expires_at = FAR_FUTURE
    else:
        expires_at = ((now or datetime.now(timezone.utc)) + expires_in).isoformat()
    return TokenPair(
        access_token=access,
        access_expires_at=expires_at,
        refresh_token=refresh,
        refresh_expires_at=FAR_FUTURE,
    )


class FakeBackend(AuthBackend):
    """AuthBackend driven by queues of scripted outcomes.

    Each queue entry is either an :class:`ApiResult` to return or an
    exception to raise.  When a queue is empty, ``login`` hands out fresh
    far-future tokens, ``fetch_current_user`` returns Alice and ``refresh``
    fails.  Setting ``gates[name]`` to an :class:`asyncio.Event` makes that
    call wait until the event is set, which is how tests build
    interleavings.
    """

    def __init__(self):
        self.login_results = []
        self.refresh_results = []
        self.user_results = []
        self.calls = []
        self.gates = {}

    async def _outcome(self, name, queue, default):
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        outcome = queue.pop(0) if queue else default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def login(self, email, password):
        self.calls.append(("login", email, password))
        return await self._outcome("login", self.login_results, ApiResult.success(make_tokens()))

    async def refresh(self, refresh_token):
        self.calls.append(("refresh", refresh_token))
        return await self._outcome(
            "refresh", self.refresh_results, ApiResult.failure("Refresh token expired", 401)
        )

    async def fetch_current_user(self, access_token):
        self.calls.append(("fetch_current_user", access_token))
        return await self._outcome("fetch_current_user", self.user_results, ApiResult.success(ALICE))

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Never read or write the real user config directory."""
    monkeypatch.setattr("authsession.storage.config.SETTINGS_FILE", tmp_path / "settings.json")


async def settle():
    """Let every ready callback and task step run."""
    for _ in range(10):
        await asyncio.sleep(0)
