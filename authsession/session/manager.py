"""Session manager: login, logout, initial load and proactive token refresh.

The manager is the only writer of its :class:`SessionStore`.  Every
transition is one synchronous ``_commit`` call inside a task step, so on
asyncio no reader can observe a half-applied change.  Background work
(initial load, token refresh) records the *epoch* it started in and drops
its result if any other transition was committed in the meantime.  The
one exception is a failed login that settles an ``UNRESOLVED`` state: it
leaves the initial load's epoch alone, so valid stored tokens still win.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Awaitable, Callable, Union

from loguru import logger

from ..api.backend import AuthBackend
from ..models.session import SessionState
from ..models.tokens import TokenPair
from ..models.user import Credentials, UserIdentity
from .errors import (
    AlreadyAuthenticatedError,
    AuthError,
    IdentityFetchError,
    LoginRejectedError,
    NotAuthenticatedError,
    RefreshFailedError,
    SessionDisposedError,
)
from .scheduler import REFRESH_THRESHOLD, Clock, RefreshScheduler, utcnow
from .store import Observer, SessionStore, Unsubscribe

OnSessionChange = Callable[[Union[TokenPair, None]], None]
InitialTokens = Union[TokenPair, Mapping, Awaitable[Any], None]


class SessionManager:
    """Owns tokens and user identity for one session.

    Must be constructed inside a running event loop: the initial tokens (if
    any) start resolving immediately in a background task, and until that
    settles :meth:`get_state` reports ``UNRESOLVED``.

    Example::

        async with SessionManager(HttpAuthBackend(), on_session_change=save) as session:
            await session.ready()
            if not session.state.is_authenticated:
                await session.login(Credentials(email=email, password=password))

    Parameters
    ----------
    backend:
        The :class:`AuthBackend` used for login, refresh and identity calls.
    initial_tokens:
        A :class:`TokenPair` (or its wire-format mapping), ``None``, or an
        awaitable resolving to either.
    on_session_change:
        Called with the new tokens after login and refresh, and with
        ``None`` whenever the session ends.  Never called for the initial
        load.
    refresh_threshold:
        How long before access-token expiry to refresh.
    clock:
        Current-time source for refresh scheduling.
    """

    def __init__(
        self,
        backend: AuthBackend,
        initial_tokens: InitialTokens = None,
        on_session_change: OnSessionChange | None = None,
        *,
        refresh_threshold: timedelta = REFRESH_THRESHOLD,
        clock: Clock | None = None,
    ) -> None:
        self._backend = backend
        self._on_session_change = on_session_change
        self._store = SessionStore()
        self._epoch = 0
        self._disposed = False
        self._scheduler = RefreshScheduler(
            self._scheduled_refresh,
            threshold=refresh_threshold,
            clock=clock or utcnow,
        )
        self._initial_task = asyncio.get_running_loop().create_task(
            self._resolve_initial(initial_tokens, self._epoch)
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def get_state(self) -> SessionState:
        return self._store.get()

    @property
    def state(self) -> SessionState:
        return self._store.get()

    @property
    def current_user(self) -> UserIdentity | None:
        return self._store.get().user

    @property
    def tokens(self) -> TokenPair | None:
        return self._store.get().tokens

    @property
    def refresh_pending(self) -> bool:
        """``True`` while a refresh timer is armed."""
        return self._scheduler.pending

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, observer: Observer) -> Unsubscribe:
        """Call *observer* with every new :class:`SessionState`."""
        return self._store.subscribe(observer)

    async def ready(self) -> SessionState:
        """Wait for the initial load to settle and return the state."""
        await asyncio.shield(self._initial_task)
        return self._store.get()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def login(self, credentials: Credentials | Mapping) -> None:
        """Log in and load the user's identity.

        Raises :class:`AlreadyAuthenticatedError` if a user is logged in,
        :class:`LoginRejectedError` if the backend refuses (or cannot be
        reached) and :class:`IdentityFetchError` if the identity lookup
        fails.  On any failure the session is left ``UNAUTHENTICATED``.
        """
        self._ensure_open()
        if not isinstance(credentials, Credentials):
            credentials = Credentials.model_validate(credentials)
        if self._store.get().is_authenticated:
            raise AlreadyAuthenticatedError()

        logger.info(f"Logging in as {credentials.email}")
        try:
            tokens = await self._request_tokens(credentials)
            user = await self._load_user(tokens.access_token)
        except AuthError as exc:
            if not self._disposed:
                self._clear_after_failed_login(exc)
            raise

        # Disposed while waiting on the backend: drop the result.
        self._ensure_open()
        self._commit(SessionState.authenticated(user, tokens), notify=True)
        logger.info(f"Logged in as {user.display_name} ({user.user_id})")

    async def logout(self) -> None:
        """End the session.  Raises :class:`NotAuthenticatedError` if there is none."""
        self._ensure_open()
        if not self._store.get().is_authenticated:
            raise NotAuthenticatedError()
        self._commit(SessionState.unauthenticated(), notify=True)
        logger.info("Logged out")

    async def refresh(self) -> TokenPair:
        """Exchange the refresh token for a new pair right now.

        On success the new pair replaces the old one and the refresh timer
        is re-armed.  On failure the session is logged out and
        :class:`RefreshFailedError` is raised; there is no retry.
        """
        self._ensure_open()
        state = self._store.get()
        if not state.is_authenticated:
            raise NotAuthenticatedError()
        epoch = self._epoch

        try:
            result = await self._backend.refresh(state.tokens.refresh_token)
        except Exception as exc:
            logger.error(f"Error refreshing token: {exc}")
            self._end_session_after_failed_refresh(epoch)
            raise RefreshFailedError(f"Error refreshing token: {exc}") from exc

        if not result.ok or result.data is None:
            logger.warning(f"Failed to refresh token: {result.message}")
            self._end_session_after_failed_refresh(epoch)
            raise RefreshFailedError(result.message)

        if self._superseded(epoch):
            self._ensure_open()
            logger.warning("Session changed during token refresh; new tokens dropped")
            raise RefreshFailedError("Session changed during token refresh")

        self._commit(SessionState.authenticated(state.user, result.data), notify=True)
        logger.debug(f"Access token refreshed ({state.tokens.fingerprint} -> {result.data.fingerprint})")
        return result.data

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Cancel the refresh timer and stop applying results.

        Backend calls already in flight are left to finish; whatever they
        return is ignored.
        """
        if self._disposed:
            return
        self._disposed = True
        self._scheduler.close()
        logger.debug("Session manager disposed")

    async def aclose(self) -> None:
        """Dispose and wait for in-flight background work to finish."""
        self.dispose()
        await asyncio.gather(
            self._initial_task, *self._scheduler.in_flight, return_exceptions=True
        )

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _resolve_initial(self, initial: InitialTokens, epoch: int) -> None:
        user: UserIdentity | None = None
        tokens: TokenPair | None = None
        try:
            resolved = await initial if inspect.isawaitable(initial) else initial
            if resolved is not None:
                tokens = (
                    resolved
                    if isinstance(resolved, TokenPair)
                    else TokenPair.model_validate(resolved)
                )
                user = await self._load_user(tokens.access_token)
        except IdentityFetchError as exc:
            logger.warning(f"Initial tokens rejected: {exc}")
        except Exception as exc:
            logger.error(f"Error loading initial tokens: {exc}")

        if self._superseded(epoch):
            logger.debug("Initial session load superseded; result dropped")
            return
        if user is not None and tokens is not None:
            self._commit(SessionState.authenticated(user, tokens), notify=False)
        else:
            self._commit(SessionState.unauthenticated(), notify=False)

    async def _request_tokens(self, credentials: Credentials) -> TokenPair:
        try:
            result = await self._backend.login(
                credentials.email, credentials.password.get_secret_value()
            )
        except Exception as exc:
            logger.error(f"Login request failed: {exc}")
            raise LoginRejectedError(f"Login request failed: {exc}") from exc
        if not result.ok or result.data is None:
            logger.warning(f"Login rejected: {result.message}")
            raise LoginRejectedError(result.message)
        return result.data

    async def _load_user(self, access_token: str) -> UserIdentity:
        try:
            result = await self._backend.fetch_current_user(access_token)
        except Exception as exc:
            logger.error(f"Error fetching user info: {exc}")
            raise IdentityFetchError(f"Error fetching user info: {exc}") from exc
        if not result.ok or result.data is None:
            raise IdentityFetchError(result.message)
        return result.data

    async def _scheduled_refresh(self) -> None:
        try:
            await self.refresh()
        except (NotAuthenticatedError, SessionDisposedError) as exc:
            logger.debug(f"Scheduled token refresh skipped: {exc}")
        except RefreshFailedError as exc:
            logger.warning(f"Scheduled token refresh failed: {exc}")

    def _clear_after_failed_login(self, exc: AuthError) -> None:
        previous = self._store.get()
        if previous.is_authenticated:
            self._commit(SessionState.unauthenticated(), notify=False)
        elif not previous.is_resolved:
            # Settle now, but leave the pending initial load free to land.
            self._commit(SessionState.unauthenticated(), notify=False, supersede=False)
        # Tokens were handed out (or a session was live): tell the observer.
        if previous.is_authenticated or isinstance(exc, IdentityFetchError):
            self._notify(None)

    def _end_session_after_failed_refresh(self, epoch: int) -> None:
        if self._superseded(epoch):
            logger.debug("Session changed during failed token refresh; leaving it alone")
            return
        self._commit(SessionState.unauthenticated(), notify=True)

    def _commit(self, state: SessionState, notify: bool, supersede: bool = True) -> None:
        if supersede:
            self._epoch += 1
        self._store.set(state)
        if state.is_authenticated:
            self._scheduler.schedule(state.tokens)
        else:
            self._scheduler.cancel()
        logger.debug(f"Session is now {state.status.value}")
        if notify:
            self._notify(state.tokens)

    def _notify(self, tokens: TokenPair | None) -> None:
        if self._on_session_change is None:
            return
        try:
            self._on_session_change(tokens)
        except Exception:
            logger.exception("on_session_change callback raised")

    def _superseded(self, epoch: int) -> bool:
        return self._disposed or epoch != self._epoch

    def _ensure_open(self) -> None:
        if self._disposed:
            raise SessionDisposedError()
