"""Timer that refreshes the access token shortly before it expires.

At most one timer is armed at any time: every call to
:meth:`RefreshScheduler.schedule` cancels the previous one first.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from loguru import logger

from ..models.tokens import TokenPair

REFRESH_THRESHOLD = timedelta(minutes=5)

# Longest delay a 32-bit millisecond timer can represent (~24.8 days).
# Tokens that live longer than this (long-lived dev/test tokens) are not
# scheduled at all; the next token change re-evaluates them.
MAX_TIMER_DELAY = timedelta(milliseconds=2**31 - 1)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshScheduler:
    """Arms a ``loop.call_later`` timer against the access-token deadline.

    Parameters
    ----------
    refresh:
        Coroutine function run when the timer fires.  It is expected to
        handle its own errors; anything that escapes is logged.
    threshold:
        How long before expiry the refresh should happen.
    clock:
        Returns the current time as an aware ``datetime``.
    max_delay:
        Delays above this are treated as "far future" and not armed.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[None]],
        threshold: timedelta = REFRESH_THRESHOLD,
        clock: Clock = utcnow,
        max_delay: timedelta = MAX_TIMER_DELAY,
    ) -> None:
        self._refresh = refresh
        self.threshold = threshold
        self._clock = clock
        self._max_delay = max_delay
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> bool:
        """``True`` while a refresh timer is armed."""
        return self._timer is not None

    @property
    def in_flight(self) -> set[asyncio.Task]:
        """Refresh tasks that have been started but not yet finished."""
        return set(self._tasks)

    def delay_for(self, tokens: TokenPair) -> float | None:
        """Seconds until a refresh is due for *tokens*.

        Returns ``None`` when there is no usable deadline, and ``0.0`` when
        the refresh is already due.  The far-future check is left to
        :meth:`schedule`.
        """
        deadline = tokens.access_deadline()
        if deadline is None:
            return None
        try:
            refresh_at = deadline - self.threshold
        except OverflowError:
            # Deadline within the threshold of datetime.min: long past.
            return 0.0
        return max(0.0, (refresh_at - self._clock()).total_seconds())

    def schedule(self, tokens: TokenPair) -> float | None:
        """(Re)arm the timer for *tokens*.

        Returns the delay that was armed, ``0.0`` if the refresh was started
        immediately, or ``None`` if nothing was scheduled.
        """
        self.cancel()
        if self._closed:
            return None

        delay = self.delay_for(tokens)
        if delay is None:
            logger.debug(f"Tokens {tokens.fingerprint} have no usable expiry; not scheduling refresh")
            return None
        if delay == 0.0:
            logger.debug(f"Tokens {tokens.fingerprint} are due for refresh; refreshing now")
            self._start_refresh()
            return 0.0
        if delay > self._max_delay.total_seconds():
            logger.debug(
                f"Tokens {tokens.fingerprint} expire in the far future ({delay:.0f}s); not scheduling refresh"
            )
            return None

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._fire)
        logger.debug(f"Token refresh for {tokens.fingerprint} scheduled in {delay:.1f}s")
        return delay

    def cancel(self) -> None:
        """Disarm the pending timer, if any.  In-flight refreshes keep running."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self) -> None:
        """Cancel the timer and refuse to arm new ones."""
        self._closed = True
        self.cancel()

    def _fire(self) -> None:
        self._timer = None
        if not self._closed:
            self._start_refresh()

    def _start_refresh(self) -> None:
        task = asyncio.get_running_loop().create_task(self._refresh())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"Token refresh task failed: {exc}")
