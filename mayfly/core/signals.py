"""Cancellation tokens and the signal handlers that fire them."""

from __future__ import annotations

import logging
import signal
import threading
import types
from collections.abc import Callable

from mayfly.errors import OperationCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancellation flag that blocking operations wait on.

    Waiting on the token instead of sleeping lets a cancellation wake every
    poll loop and bounded wait immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the token. Subsequent calls are no-ops."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)

        for callback in callbacks:
            callback()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` elapses.

        Parameters
        ----------
        timeout : float | None
            Maximum seconds to wait, or None to wait forever

        Returns
        -------
        bool
            True if the token was cancelled
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(self, message: str = "Operation cancelled") -> None:
        if self._event.is_set():
            raise OperationCancelled(message)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` when the token fires, or now if it already has."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return

        callback()


class ShutdownSignals:
    """Two-level shutdown request driven by SIGINT/SIGTERM.

    The first signal fires ``interrupt``, which ends the active phase and
    starts teardown. A second signal fires ``abort``, which cuts teardown's
    own bounded waits short.

    Attributes
    ----------
    interrupt : CancellationToken
        Fired by the first signal
    abort : CancellationToken
        Fired by any later signal
    """

    def __init__(self) -> None:
        self.interrupt = CancellationToken()
        self.abort = CancellationToken()
        self._lock = threading.RLock()
        self._previous: dict[int, object] = {}

    def request(self, signum: int | None = None) -> None:
        """Escalate the shutdown level by one."""
        with self._lock:
            escalate = self.interrupt.cancelled

        if escalate:
            logger.warning("Second interrupt received, aborting teardown waits")
            self.abort.cancel()
            return

        if signum is not None:
            logger.debug("Received signal %s, requesting teardown", signum)
        self.interrupt.cancel()

    def _handler(self, signum: int, frame: types.FrameType | None) -> None:
        self.request(signum)

    def install(self) -> None:
        """Register SIGINT and SIGTERM handlers. Main thread only."""
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous[signum] = signal.getsignal(signum)
            signal.signal(signum, self._handler)

    def restore(self) -> None:
        """Restore the handlers that were active before ``install``."""
        for signum, previous in self._previous.items():
            signal.signal(signum, previous)
        self._previous.clear()
