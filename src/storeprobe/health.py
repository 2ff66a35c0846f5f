"""Health check reporting for connection probes.

This module turns a ``ProbeOutcome`` into the status vocabulary of a health
reporting framework and wraps a probe with a timeout.

Status mapping:
- Healthy: always reported as ``healthy``
- Unhealthy: reported as the configured failure status (``unhealthy`` by
  default, or ``degraded``), carrying the description and cause
- Canceled: reported as the configured canceled status. By default this is
  the failure status; set it to ``canceled`` to report cancellation and
  timeouts as a distinct status.

Configuration via environment variables:
- STOREPROBE_TIMEOUT: Timeout in seconds for a single check (default: 5.0)
- STOREPROBE_FAILURE_STATUS: Status for failed probes (default: unhealthy)
- STOREPROBE_CANCELED_STATUS: Status for canceled probes (default: failure status)

Usage:
    from storeprobe.health import ConnectionHealthCheck, HealthCheckConfig

    check = ConnectionHealthCheck(
        probe=ConnectionProbe.create("tcp://localhost:1113"),
        config=HealthCheckConfig(timeout=2.0),
    )
    result = await check.check_health()
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from storeprobe.cancellation import CancellationToken
from storeprobe.config import DEFAULT_TIMEOUT, Config, load_config
from storeprobe.exceptions import ConfigError
from storeprobe.logging import get_logger, log_probe_summary
from storeprobe.probe import ConnectionProbe
from storeprobe.types import Canceled, Healthy, ProbeOutcome, Unhealthy

if TYPE_CHECKING:
    from pathlib import Path

    from storeprobe.connection import ConnectionFactory

logger = get_logger(__name__)

CANCELED_DESCRIPTION = "Health check was canceled or timed out"


class HealthStatus(Enum):
    """Health status values reported for a probe."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    CANCELED = "canceled"


@dataclass
class HealthCheckResult:
    """Result of a health check operation.

    Attributes:
        status: Reported health status.
        description: Optional human-readable detail, e.g. the close reason.
        exception: Optional exception behind a failure.
        latency_ms: Duration of the check in milliseconds.
        timestamp: Unix timestamp of the health check.
    """

    status: HealthStatus
    description: str | None = None
    exception: BaseException | None = None
    latency_ms: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def is_healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
            "timestamp": self.timestamp,
        }
        if self.description:
            result["description"] = self.description
        if self.exception is not None:
            result["error"] = f"{type(self.exception).__name__}: {self.exception}"
        return result


class ResultMapper:
    """Maps probe outcomes to health statuses.

    Attributes:
        failure_status: Status reported for ``Unhealthy`` outcomes.
        canceled_status: Status reported for ``Canceled`` outcomes.
    """

    def __init__(
        self,
        failure_status: HealthStatus = HealthStatus.UNHEALTHY,
        canceled_status: HealthStatus | None = None,
    ) -> None:
        """Initialize the mapper.

        Args:
            failure_status: Status for failed probes.
            canceled_status: Status for canceled probes. Defaults to
                ``failure_status``.

        Raises:
            ConfigError: If either status is ``HEALTHY``, or the failure
                status is ``CANCELED``.
        """
        if failure_status in (HealthStatus.HEALTHY, HealthStatus.CANCELED):
            raise ConfigError(f"failure_status cannot be {failure_status.value}")
        if canceled_status is HealthStatus.HEALTHY:
            raise ConfigError("canceled_status cannot be healthy")
        self.failure_status = failure_status
        self.canceled_status = canceled_status or failure_status

    def map(self, outcome: ProbeOutcome, latency_ms: float = 0.0) -> HealthCheckResult:
        """Translate a probe outcome.

        Args:
            outcome: The probe outcome.
            latency_ms: Measured duration to attach to the result.

        Returns:
            HealthCheckResult in the reporting vocabulary.
        """
        if isinstance(outcome, Healthy):
            return HealthCheckResult(status=HealthStatus.HEALTHY, latency_ms=latency_ms)

        if isinstance(outcome, Unhealthy):
            description = outcome.description
            if description is None and outcome.cause is not None:
                description = str(outcome.cause)
            return HealthCheckResult(
                status=self.failure_status,
                description=description,
                exception=outcome.cause,
                latency_ms=latency_ms,
            )

        if isinstance(outcome, Canceled):
            return HealthCheckResult(
                status=self.canceled_status,
                description=CANCELED_DESCRIPTION,
                latency_ms=latency_ms,
            )

        raise TypeError(f"Unknown probe outcome: {outcome!r}")


def _status_or_none(value: str) -> HealthStatus | None:
    return HealthStatus(value) if value else None


@dataclass
class HealthCheckConfig:
    """Configuration for health check behavior.

    Attributes:
        timeout: Seconds before the probe is canceled (default: 5.0).
        failure_status: Status for failed probes (default: unhealthy).
        canceled_status: Status for canceled probes; None means failure_status.
    """

    timeout: float = DEFAULT_TIMEOUT
    failure_status: HealthStatus = HealthStatus.UNHEALTHY
    canceled_status: HealthStatus | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ConfigError(f"timeout must be a positive number, got {self.timeout}")

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> HealthCheckConfig:
        """Load configuration from environment variables.

        Args:
            env_file: Optional path to a .env file, passed to ``load_config``.

        Returns:
            HealthCheckConfig with values from environment or defaults.
        """
        return cls.from_config(load_config(env_file))

    @classmethod
    def from_config(cls, config: Config) -> HealthCheckConfig:
        """Create HealthCheckConfig from application Config.

        Args:
            config: Application configuration.

        Returns:
            HealthCheckConfig with appropriate values.
        """
        return cls(
            timeout=config.timeout,
            failure_status=HealthStatus(config.failure_status),
            canceled_status=_status_or_none(config.canceled_status),
        )

    def mapper(self) -> ResultMapper:
        """Build the result mapper for these statuses."""
        return ResultMapper(
            failure_status=self.failure_status,
            canceled_status=self.canceled_status,
        )


async def _forward_cancellation(source: CancellationToken, target: CancellationToken) -> None:
    await source.wait()
    target.cancel()


class ConnectionHealthCheck:
    """Health check that probes a remote service with a timeout.

    Attributes:
        probe: The connection probe to run.
        config: Health check configuration.
        mapper: Maps probe outcomes to statuses.
    """

    def __init__(
        self,
        probe: ConnectionProbe,
        config: HealthCheckConfig | None = None,
    ) -> None:
        """Initialize the health check.

        Args:
            probe: The connection probe to run.
            config: Health check configuration. If not provided, loads from env.

        Raises:
            ConfigError: If the configured statuses are invalid.
        """
        self.probe = probe
        self.config = config or HealthCheckConfig.from_env()
        self.mapper = self.config.mapper()

    @classmethod
    def from_config(
        cls,
        config: Config,
        connection_factory: ConnectionFactory | None = None,
    ) -> ConnectionHealthCheck:
        """Create a ConnectionHealthCheck from application Config.

        Args:
            config: Application configuration.
            connection_factory: Optional connection factory for the probe.

        Returns:
            ConnectionHealthCheck configured from ``config``.

        Raises:
            ConfigError: If the target or credentials are invalid.
        """
        probe = ConnectionProbe.create(
            config.target,
            login=config.login or None,
            password=config.password or None,
            retry_limit=config.retry_limit,
            retry_delay=config.retry_delay,
            connection_factory=connection_factory,
        )
        return cls(probe=probe, config=HealthCheckConfig.from_config(config))

    async def check_health(
        self, cancellation: CancellationToken | None = None
    ) -> HealthCheckResult:
        """Run the probe and report its outcome.

        The probe is canceled when ``config.timeout`` elapses or when the
        caller's ``cancellation`` token fires, whichever comes first.

        Args:
            cancellation: Optional caller cancellation token.

        Returns:
            HealthCheckResult; probe failures never raise.
        """
        token = CancellationToken()
        timer = token.cancel_after(self.config.timeout)
        forwarder = (
            asyncio.ensure_future(_forward_cancellation(cancellation, token))
            if cancellation is not None
            else None
        )

        start_time = time.perf_counter()
        outcome: ProbeOutcome
        try:
            outcome = await self.probe.probe(token)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Broad catch intentional for health checks - they should never crash
            logger.error(f"Unexpected error in health check for {self.probe.target}: {e}")
            outcome = Unhealthy(description=str(e), cause=e)
        finally:
            timer.cancel()
            if forwarder is not None:
                forwarder.cancel()

        latency_ms = (time.perf_counter() - start_time) * 1000
        result = self.mapper.map(outcome, latency_ms=latency_ms)
        log_probe_summary(
            logger,
            target=self.probe.target,
            status=result.status.value,
            latency_ms=latency_ms,
            description=result.description,
        )
        return result
