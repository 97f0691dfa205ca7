"""TTL countdown raced against an external cancellation."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from mayfly.constants import COUNTDOWN_TICK_SECONDS
from mayfly.core.models import TeardownReason
from mayfly.core.signals import CancellationToken

logger = logging.getLogger(__name__)


class Countdown:
    """Block until the deadline passes or the token is cancelled.

    The loop wakes every ``tick`` seconds to report the remaining time. The
    cancellation token wakes it immediately through an internal event, so an
    interrupt never waits for the next tick.

    Parameters
    ----------
    deadline : float
        Deadline on the ``clock`` timeline
    cancel : CancellationToken
        Token whose cancellation ends the countdown early
    on_tick : Callable[[float], None] | None
        Called with the remaining seconds on every tick
    tick : float
        Refresh interval in seconds
    clock : Callable[[], float]
        Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        deadline: float,
        cancel: CancellationToken,
        on_tick: Callable[[float], None] | None = None,
        tick: float = COUNTDOWN_TICK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.deadline = deadline
        self.cancel = cancel
        self.on_tick = on_tick
        self.tick = tick
        self.clock = clock
        self._wake = threading.Event()
        self.cancel.on_cancel(self._wake.set)

    @classmethod
    def from_ttl(
        cls,
        ttl: float,
        cancel: CancellationToken,
        on_tick: Callable[[float], None] | None = None,
        tick: float = COUNTDOWN_TICK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> Countdown:
        return cls(clock() + ttl, cancel, on_tick=on_tick, tick=tick, clock=clock)

    def remaining(self) -> float:
        return max(0.0, self.deadline - self.clock())

    def run(self) -> TeardownReason:
        """Run the countdown.

        Returns
        -------
        TeardownReason
            EXPIRED when the deadline passed, INTERRUPTED when cancelled
        """
        while True:
            if self._wake.is_set():
                logger.debug("Countdown interrupted with %.1fs left", self.remaining())
                return TeardownReason.INTERRUPTED

            remaining = self.deadline - self.clock()

            if self.on_tick is not None:
                self.on_tick(max(0.0, remaining))

            if remaining <= 0:
                logger.debug("Countdown reached deadline")
                return TeardownReason.EXPIRED

            if self._wake.wait(min(self.tick, remaining)):
                logger.debug("Countdown interrupted with %.1fs left", self.remaining())
                return TeardownReason.INTERRUPTED
