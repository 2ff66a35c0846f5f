"""Exception taxonomy for connection probes.

Only ``ConfigError`` ever escapes to a caller, and only while a probe is being
built. Every other error is absorbed by the probe and turned into a
``ProbeOutcome`` value:

- TransportInitError: the connection could not be created or the connect call
  itself raised.
- RemoteError: the transport reported an error on its error channel.
- ProbeCanceled: the caller's cancellation token fired.
"""

from __future__ import annotations


class ProbeError(Exception):
    """Base class for all probe errors."""

    pass


class ConfigError(ProbeError, ValueError):
    """Raised when probe configuration is invalid.

    This exception should be used for:
    - An empty or malformed connection target
    - A login without a password, or a password without a login
    - Negative retry limits or retry delays
    - Unsupported status names

    Example:
        >>> raise ConfigError("target must not be empty")
    """

    pass


class TransportInitError(ProbeError):
    """Raised when a connection cannot be created or its connect call fails.

    The original exception is chained as ``__cause__``.
    """

    pass


class RemoteError(ProbeError):
    """Raised for an error delivered on the transport's error channel."""

    pass


class ProbeCanceled(ProbeError):
    """Raised when a cancellation token is observed as cancelled."""

    def __init__(self, message: str = "Probe was canceled") -> None:
        super().__init__(message)
