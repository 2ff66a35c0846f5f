"""Connection protocol consumed by the probe.

The probe does not care how a connection reaches the remote service. It needs
a way to create one, start it, listen for the three terminal signals and
release it. Any object satisfying ``Connection`` can be probed; see
``storeprobe.transport.TcpConnection`` for the built-in implementation.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Protocol, TypeAlias, runtime_checkable

from storeprobe.types import ConnectionSettings


class ConnectionState(StrEnum):
    """Lifecycle of a connection.

    Values:
        CREATED: Built but not started.
        CONNECTING: ``connect()`` has been issued.
        OPEN: The remote service accepted the connection.
        CLOSED: Closed by the client or after exhausting reconnections.
        FAILED: The transport reported an error.
    """

    CREATED = "created"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


ConnectedHandler: TypeAlias = Callable[[], object]
ClosedHandler: TypeAlias = Callable[[str], object]
ErrorHandler: TypeAlias = Callable[[BaseException], object]


@runtime_checkable
class Connection(Protocol):
    """Protocol for a probe-able connection.

    Event handlers may be invoked from any thread, any number of times.
    """

    def on_connected(self, handler: ConnectedHandler) -> None:
        """Subscribe to successful connection."""
        ...

    def on_closed(self, handler: ClosedHandler) -> None:
        """Subscribe to closure; the handler receives the close reason."""
        ...

    def on_error(self, handler: ErrorHandler) -> None:
        """Subscribe to transport errors; the handler receives the cause."""
        ...

    async def connect(self) -> None:
        """Initiate the connection attempt.

        Returns once the attempt has started. It does not imply the attempt
        succeeded; the outcome arrives on the event channels.
        """
        ...

    def close(self) -> None:
        """Release the connection.

        Must be idempotent and safe to call while ``connect()`` or the
        attempt it started is still in flight.
        """
        ...


ConnectionFactory: TypeAlias = Callable[[str, ConnectionSettings], Connection]
"""Builds a fresh connection for a target; called once per probe."""
