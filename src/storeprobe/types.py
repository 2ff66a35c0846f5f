"""Data model for connection probes.

This module holds the immutable values that flow through a probe:

- ``Credentials`` and ``ConnectionSettings``: how a connection is built
- ``ProbeConfig``: what to probe
- ``Connected`` / ``Closed`` / ``Errored``: the three terminal signals a
  connection can emit
- ``Healthy`` / ``Unhealthy`` / ``Canceled``: the single outcome of a probe

Usage:
    from storeprobe.types import ConnectionSettings, ProbeConfig

    settings = ConnectionSettings.create(login="admin", password="changeit")
    config = ProbeConfig(target="tcp://localhost:1113", settings=settings)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypeAlias

from storeprobe.exceptions import ConfigError

# Defaults carried over from the event store health check this probe replaces.
DEFAULT_RETRY_LIMIT = 1
DEFAULT_RETRY_DELAY = 0.5  # seconds
DEFAULT_CONNECTION_NAME = "Health Check Connection"


class ProbeState(StrEnum):
    """Lifecycle states of a single probe invocation."""

    IDLE = "idle"
    CONNECTING = "connecting"
    RACING = "racing"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class Credentials:
    """Login and password sent by the connection.

    Attributes:
        login: User name.
        password: User password.
    """

    login: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(login={self.login!r}, password='***')"


def _is_blank(value: str | None) -> bool:
    return value is None or value == ""


@dataclass(frozen=True)
class ConnectionSettings:
    """Immutable connection settings.

    Attributes:
        retry_limit: Number of reconnections attempted before the connection
            gives up and closes. Must be zero or greater.
        retry_delay: Seconds to wait between reconnection attempts. Must be
            zero or greater.
        credentials: Optional default credentials for the connection.
        connection_name: Name the connection reports to the remote service.

    Raises:
        ConfigError: If either knob is negative or not a finite number.
    """

    retry_limit: int = DEFAULT_RETRY_LIMIT
    retry_delay: float = DEFAULT_RETRY_DELAY
    credentials: Credentials | None = None
    connection_name: str = DEFAULT_CONNECTION_NAME

    def __post_init__(self) -> None:
        """Validate the retry knobs."""
        # bool is a subclass of int
        if isinstance(self.retry_limit, bool) or not isinstance(self.retry_limit, int):
            raise ConfigError(
                f"retry_limit must be an integer, got {type(self.retry_limit).__name__}"
            )
        if self.retry_limit < 0:
            raise ConfigError(f"retry_limit must not be negative, got {self.retry_limit}")
        if isinstance(self.retry_delay, bool) or not isinstance(self.retry_delay, int | float):
            raise ConfigError(
                f"retry_delay must be a number, got {type(self.retry_delay).__name__}"
            )
        if not math.isfinite(self.retry_delay):
            raise ConfigError(f"retry_delay must be finite, got {self.retry_delay}")
        if self.retry_delay < 0:
            raise ConfigError(f"retry_delay must not be negative, got {self.retry_delay}")

    @classmethod
    def create(
        cls,
        login: str | None = None,
        password: str | None = None,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> ConnectionSettings:
        """Build settings from an optional login/password pair.

        Empty strings count as absent. Either both values are given, or
        neither is.

        Args:
            login: Optional user name.
            password: Optional password.
            retry_limit: Reconnection limit.
            retry_delay: Delay between reconnections in seconds.

        Returns:
            ConnectionSettings with credentials set when both are present.

        Raises:
            ConfigError: If exactly one of login and password is provided.
        """
        login_missing = _is_blank(login)
        password_missing = _is_blank(password)
        if login_missing != password_missing:
            missing = "password" if password_missing else "login"
            raise ConfigError(f"credentials are incomplete: {missing} is missing")

        credentials = None
        if not login_missing:
            credentials = Credentials(login=login, password=password)  # type: ignore[arg-type]
        return cls(retry_limit=retry_limit, retry_delay=retry_delay, credentials=credentials)


@dataclass(frozen=True)
class ProbeConfig:
    """What a probe connects to and how.

    Attributes:
        target: Connection target, e.g. ``tcp://localhost:1113``.
        settings: Connection settings used for every probe.

    Raises:
        ConfigError: If the target is empty.
    """

    target: str
    settings: ConnectionSettings = field(default_factory=ConnectionSettings)

    def __post_init__(self) -> None:
        if not isinstance(self.target, str) or not self.target.strip():
            raise ConfigError("target must not be empty")


# ---------------------------------------------------------------------------
# Signals emitted by a connection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Connected:
    """The connection was established."""


@dataclass(frozen=True)
class Closed:
    """The connection closed, usually after exhausting its retry limit."""

    reason: str


@dataclass(frozen=True)
class Errored:
    """The transport reported an error."""

    cause: BaseException


Signal: TypeAlias = Connected | Closed | Errored


# ---------------------------------------------------------------------------
# Probe outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Healthy:
    """The remote service accepted a connection."""


@dataclass(frozen=True)
class Unhealthy:
    """The remote service could not be reached.

    Attributes:
        description: Human-readable reason, e.g. the close reason.
        cause: The exception behind the failure, if any.
    """

    description: str | None = None
    cause: BaseException | None = None


@dataclass(frozen=True)
class Canceled:
    """The probe was canceled or timed out before a terminal signal arrived."""


ProbeOutcome: TypeAlias = Healthy | Unhealthy | Canceled


def outcome_for(signal: Signal) -> ProbeOutcome:
    """Translate a connection signal into the probe outcome it settles.

    Args:
        signal: The signal delivered by the connection.

    Returns:
        ``Healthy`` for ``Connected``, otherwise ``Unhealthy`` carrying the
        close reason or the error.
    """
    if isinstance(signal, Connected):
        return Healthy()
    if isinstance(signal, Closed):
        return Unhealthy(description=signal.reason)
    if isinstance(signal, Errored):
        return Unhealthy(cause=signal.cause)
    raise TypeError(f"Unknown signal: {signal!r}")
