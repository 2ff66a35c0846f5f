"""Connection probe: race a fresh connection's signals into one outcome.

Each call to ``ConnectionProbe.probe()`` walks through:

    idle -> connecting -> racing -> terminal

- connecting: build a connection, subscribe an ``OutcomeResolver`` to its
  connected/closed/error channels, and issue ``connect()``. Cancellation
  arriving before ``connect()`` returns closes the connection and ends the
  probe as ``Canceled`` without waiting for any signal.
- Cancellation is checked once more after ``connect()`` returns, because
  ``connect()`` finishing only means the attempt has started.
- racing: wait on the resolver. The first of connected/closed/error decides
  the outcome; cancellation joins the race as a ``Canceled`` candidate.

The connection is closed on every path. Errors raised directly by connection
construction, ``connect()`` or ``close()`` become ``Unhealthy`` with a
``TransportInitError`` cause.

Usage:
    probe = ConnectionProbe.create("tcp://localhost:1113", login="admin", password="changeit")
    token = CancellationToken()
    token.cancel_after(5.0)
    outcome = await probe.probe(token)
"""

from __future__ import annotations

import asyncio
import uuid

from storeprobe.cancellation import CancellationToken
from storeprobe.connection import Connection, ConnectionFactory
from storeprobe.exceptions import ProbeCanceled, TransportInitError
from storeprobe.logging import ContextAdapter, get_logger
from storeprobe.resolver import OutcomeResolver
from storeprobe.transport import TcpConnection, parse_target
from storeprobe.types import (
    DEFAULT_RETRY_DELAY,
    DEFAULT_RETRY_LIMIT,
    Canceled,
    Closed,
    Connected,
    ConnectionSettings,
    Errored,
    ProbeConfig,
    ProbeOutcome,
    ProbeState,
    Unhealthy,
    outcome_for,
)

logger = get_logger(__name__)


class ConnectionProbe:
    """Probes a remote service by opening a short-lived connection.

    Connections are never pooled: every probe builds, uses and releases its
    own.

    Attributes:
        config: Target and connection settings.
    """

    def __init__(
        self,
        config: ProbeConfig,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            config: Validated probe configuration.
            connection_factory: Builds a connection from a target and settings.
                Defaults to ``TcpConnection.create``.

        Raises:
            ConfigError: If the default TCP connection cannot parse the target.
        """
        self.config = config
        if connection_factory is None:
            parse_target(config.target)
        self._connection_factory: ConnectionFactory = (
            connection_factory or TcpConnection.create
        )

    @classmethod
    def create(
        cls,
        target: str,
        login: str | None = None,
        password: str | None = None,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        connection_factory: ConnectionFactory | None = None,
    ) -> ConnectionProbe:
        """Build a probe from plain values.

        Args:
            target: Connection target.
            login: Optional user name; requires ``password``.
            password: Optional password; requires ``login``.
            retry_limit: Reconnections before the connection gives up.
            retry_delay: Seconds between reconnections.
            connection_factory: Optional connection factory.

        Returns:
            A configured ConnectionProbe.

        Raises:
            ConfigError: If the target is empty, the credentials are partial,
                or a retry knob is negative.
        """
        settings = ConnectionSettings.create(
            login=login,
            password=password,
            retry_limit=retry_limit,
            retry_delay=retry_delay,
        )
        return cls(ProbeConfig(target=target, settings=settings), connection_factory)

    @property
    def target(self) -> str:
        return self.config.target

    async def probe(self, cancellation: CancellationToken | None = None) -> ProbeOutcome:
        """Run one probe.

        Args:
            cancellation: Optional leveled cancellation token. Timeouts are
                expressed by cancelling it, e.g. with ``cancel_after()``.

        Returns:
            ``Healthy``, ``Unhealthy`` or ``Canceled``. Never raises for
            probe failures.
        """
        token = cancellation or CancellationToken()
        log = logger.with_context(target=self.target, probe_id=uuid.uuid4().hex[:8])
        connection: Connection | None = None
        outcome: ProbeOutcome

        log.debug("Probe started", extra={"state": ProbeState.IDLE})
        try:
            log.debug("Building connection", extra={"state": ProbeState.CONNECTING})
            connection = self._connection_factory(self.target, self.config.settings)
            resolver = OutcomeResolver()
            connection.on_connected(lambda: resolver.complete(outcome_for(Connected())))
            connection.on_closed(lambda reason: resolver.complete(outcome_for(Closed(reason))))
            connection.on_error(lambda cause: resolver.complete(outcome_for(Errored(cause))))

            if not await self._connect(connection, token):
                raise ProbeCanceled("Canceled while connecting")

            # connect() returning only means the attempt started.
            token.raise_if_cancelled()

            log.debug("Waiting for the first signal", extra={"state": ProbeState.RACING})
            outcome = await resolver.wait(token)

        except ProbeCanceled as e:
            log.debug(str(e))
            outcome = Canceled()

        except Exception as e:
            error = TransportInitError(f"Failed to connect to {self.target}: {e}")
            error.__cause__ = e
            log.warning(str(error))
            outcome = Unhealthy(description=str(error), cause=error)

        finally:
            release_error = self._release(connection, log) if connection is not None else None

        if release_error is not None:
            outcome = Unhealthy(description=str(release_error), cause=release_error)
        log.debug(f"Probe settled: {type(outcome).__name__}", extra={"state": ProbeState.TERMINAL})
        return outcome

    def _release(self, connection: Connection, log: ContextAdapter) -> TransportInitError | None:
        """Close the connection, returning the failure instead of raising it."""
        try:
            connection.close()
        except Exception as e:
            error = TransportInitError(f"Failed to release connection to {self.target}: {e}")
            error.__cause__ = e
            log.warning(str(error))
            return error
        return None

    @staticmethod
    async def _connect(connection: Connection, token: CancellationToken) -> bool:
        """Race ``connect()`` against cancellation.

        Returns:
            True if ``connect()`` returned first, False if cancellation won.

        Raises:
            Exception: Whatever ``connect()`` raised.
        """
        if token.is_cancelled:
            return False

        connect_task = asyncio.ensure_future(connection.connect())
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait(
                {connect_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            connect_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if connect_task not in done:
            connect_task.cancel()
            return False

        # A connect failure caused by cancellation is still a cancellation.
        if connect_task.exception() is not None and token.is_cancelled:
            return False

        connect_task.result()
        return True
