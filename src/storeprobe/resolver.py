"""Single-assignment outcome slot shared by competing signal sources.

A connection may report success, closure and errors from whatever context its
transport runs on, sometimes more than once. ``OutcomeResolver`` accepts the
first outcome written to it and silently discards every later one, so a probe
always settles on exactly one result.

Usage:
    resolver = OutcomeResolver()
    connection.on_connected(lambda: resolver.complete(Healthy()))
    ...
    outcome = await resolver.wait(cancellation)
"""

from __future__ import annotations

import asyncio
import threading

from storeprobe.cancellation import CancellationToken
from storeprobe.logging import get_logger
from storeprobe.types import Canceled, ProbeOutcome

logger = get_logger(__name__)


class OutcomeResolver:
    """First-write-wins slot for a probe outcome.

    Must be created while an event loop is running; that loop is the one
    ``wait()`` suspends on. ``complete()`` may be called from any thread.
    """

    def __init__(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future[ProbeOutcome] = self._loop.create_future()
        self._lock = threading.Lock()
        self._outcome: ProbeOutcome | None = None

    def complete(self, outcome: ProbeOutcome) -> bool:
        """Offer an outcome.

        Args:
            outcome: The candidate outcome.

        Returns:
            True if this call won and set the outcome, False if an outcome was
            already set and this one was discarded.
        """
        with self._lock:
            if self._outcome is not None:
                logger.debug(f"Discarding {type(outcome).__name__}, outcome already settled")
                return False
            self._outcome = outcome

        try:
            self._loop.call_soon_threadsafe(self._settle, outcome)
        except RuntimeError:
            # Loop closed: the probe that owned this slot has already returned.
            logger.debug("Outcome settled after its event loop closed")
        return True

    def cancel(self) -> bool:
        """Offer a ``Canceled`` outcome; a no-op if a real signal already won."""
        return self.complete(Canceled())

    def _settle(self, outcome: ProbeOutcome) -> None:
        if not self._future.done():
            self._future.set_result(outcome)

    async def wait(self, cancellation: CancellationToken | None = None) -> ProbeOutcome:
        """Suspend until an outcome is set and return it.

        Args:
            cancellation: Optional token. If it fires before a signal arrives,
                ``Canceled`` is offered as a candidate; a signal that already
                won is never overridden.

        Returns:
            The accepted outcome.
        """
        if cancellation is not None and not self._future.done():
            cancel_waiter = asyncio.ensure_future(cancellation.wait())
            try:
                await asyncio.wait(
                    {self._future, cancel_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                cancel_waiter.cancel()
            if cancellation.is_cancelled:
                self.cancel()

        # The slot outlives a cancelled waiter, so shield it.
        return await asyncio.shield(self._future)
