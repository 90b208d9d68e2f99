"""Single-flight and cooldown gate for recommendation requests."""
from __future__ import annotations

import contextlib
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Protocol

from logic.errors import AlreadyInFlightError, CoolingDownError

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 30.0


class CancellableTimer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], CancellableTimer]


@dataclass(frozen=True)
class Lease:
    """Token proving the holder owns the in-flight slot."""

    token: int
    acquired_at: float


@dataclass
class RequestGateState:
    in_flight: bool = False
    cooldown_until: float = 0.0


class RequestGate:
    """At most one recommendation in flight, plus a cooldown after fresh results.

    The in-flight flag guards against logical re-entrancy such as a double
    submitted request; the cooldown bounds provider cost. Cache hits never arm
    the cooldown. ``clock`` and ``timer_factory`` are injectable for tests.
    """

    def __init__(
        self,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._timer_factory = timer_factory
        self._state = RequestGateState()
        self._lock = threading.Lock()
        self._next_token = 0
        self._active: Optional[Lease] = None
        self._countdown: Optional[CancellableTimer] = None

    @property
    def state(self) -> RequestGateState:
        return RequestGateState(self._state.in_flight, self._state.cooldown_until)

    @property
    def in_flight(self) -> bool:
        return self._state.in_flight

    def try_acquire(self, check_cooldown: bool = True) -> Lease:
        """Take the in-flight slot or raise.

        Raises:
            AlreadyInFlightError: another lease is outstanding.
            CoolingDownError: ``check_cooldown`` is set and the window is open.
        """

        with self._lock:
            if self._state.in_flight:
                raise AlreadyInFlightError()
            if check_cooldown:
                self._raise_if_cooling()
            self._next_token += 1
            lease = Lease(token=self._next_token, acquired_at=self._clock())
            self._state.in_flight = True
            self._active = lease
            return lease

    def release(self, lease: Lease) -> None:
        """Free the slot. Releasing a stale or already released lease is a no-op."""

        with self._lock:
            if not self._is_active(lease):
                logger.debug("Ignoring release of stale lease %s", lease.token)
                return
            self._active = None
            self._state.in_flight = False

    @contextlib.contextmanager
    def lease(self, check_cooldown: bool = True) -> Iterator[Lease]:
        """Scoped acquisition: the lease is released on every exit path."""

        acquired = self.try_acquire(check_cooldown=check_cooldown)
        try:
            yield acquired
        finally:
            self.release(acquired)

    def ensure_not_cooling(self) -> None:
        with self._lock:
            self._raise_if_cooling()

    def holds(self, lease: Lease) -> bool:
        """Whether ``lease`` is still the outstanding one."""

        with self._lock:
            return self._is_active(lease)

    def arm_cooldown(
        self,
        on_elapsed: Optional[Callable[[], None]] = None,
        lease: Optional[Lease] = None,
    ) -> Optional[float]:
        """Start the cooldown window after a fresh result.

        When ``on_elapsed`` is given a countdown timer fires it once the window
        closes; :meth:`reset` cancels a pending countdown. Passing ``lease``
        makes arming conditional on that lease still being active: after a
        :meth:`reset` the call is a no-op and returns ``None``.
        """

        with self._lock:
            if lease is not None and not self._is_active(lease):
                logger.debug("Not arming cooldown for stale lease %s", lease.token)
                return None
            self._state.cooldown_until = self._clock() + self.cooldown_seconds
            self._cancel_countdown()
            if on_elapsed is not None:
                timer = self._timer_factory(self.cooldown_seconds, on_elapsed)
                if hasattr(timer, "daemon"):
                    timer.daemon = True  # type: ignore[attr-defined]
                timer.start()
                self._countdown = timer
            return self._state.cooldown_until

    def remaining_cooldown_seconds(self) -> int:
        """Whole seconds left in the cooldown window. Read-only."""

        remaining = self._state.cooldown_until - self._clock()
        return max(0, math.ceil(remaining))

    def reset(self) -> None:
        """Return to the initial state and stop any pending countdown."""

        with self._lock:
            self._cancel_countdown()
            self._state = RequestGateState()
            self._active = None

    def _is_active(self, lease: Lease) -> bool:
        return self._active is not None and self._active.token == lease.token

    def _raise_if_cooling(self) -> None:
        remaining = self._state.cooldown_until - self._clock()
        if remaining > 0:
            raise CoolingDownError(remaining)

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None


__all__ = ["Lease", "RequestGate", "RequestGateState", "DEFAULT_COOLDOWN_SECONDS"]
