"""Leveled cancellation for probes.

A ``CancellationToken`` is a persistent signal: once cancelled it stays
cancelled, and every later check observes it. Any thread may cancel a token;
coroutines on any event loop may wait for it.

Timeouts are expressed purely as cancellation:

    token = CancellationToken()
    token.cancel_after(5.0)
    outcome = await probe.probe(token)
"""

from __future__ import annotations

import asyncio
import threading

from storeprobe.exceptions import ProbeCanceled
from storeprobe.logging import get_logger

logger = get_logger(__name__)


def _wake(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)


class CancellationToken:
    """Thread-safe, leveled cancellation signal."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]] = []

    @property
    def is_cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        with self._lock:
            return self._cancelled

    def cancel(self) -> None:
        """Request cancellation.

        Safe to call repeatedly and from any thread. Coroutines blocked in
        ``wait()`` are woken on their own event loops.
        """
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            waiters = self._waiters
            self._waiters = []

        logger.debug("Cancellation requested")
        for loop, waiter in waiters:
            try:
                loop.call_soon_threadsafe(_wake, waiter)
            except RuntimeError:
                # The waiter's loop has already closed; nobody is listening.
                logger.debug("Skipping cancellation waiter on a closed event loop")

    def cancel_after(self, delay: float) -> asyncio.TimerHandle:
        """Schedule cancellation on the running event loop.

        Args:
            delay: Seconds until the token is cancelled.

        Returns:
            The timer handle; cancel it to disarm the timeout.
        """
        return asyncio.get_running_loop().call_later(delay, self.cancel)

    def raise_if_cancelled(self) -> None:
        """Raise ``ProbeCanceled`` if cancellation has been requested."""
        if self.is_cancelled:
            raise ProbeCanceled()

    async def wait(self) -> None:
        """Suspend until the token is cancelled.

        Returns immediately if it already is.
        """
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[None] = loop.create_future()
        entry = (loop, waiter)
        with self._lock:
            if self._cancelled:
                return
            self._waiters.append(entry)
        try:
            await waiter
        finally:
            with self._lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
