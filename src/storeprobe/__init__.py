"""store-probe - liveness probe for event store connections."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("store-probe")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from storeprobe.app import main
from storeprobe.cancellation import CancellationToken
from storeprobe.exceptions import ConfigError
from storeprobe.health import ConnectionHealthCheck, HealthCheckResult, HealthStatus
from storeprobe.probe import ConnectionProbe
from storeprobe.types import Canceled, Healthy, ProbeOutcome, Unhealthy

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "CancellationToken",
    "Canceled",
    "ConfigError",
    "ConnectionHealthCheck",
    "ConnectionProbe",
    "HealthCheckResult",
    "HealthStatus",
    "Healthy",
    "ProbeOutcome",
    "Unhealthy",
    "main",
]
