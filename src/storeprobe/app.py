"""Application runner for store-probe.

Loads configuration, applies command-line overrides, runs a single health
check and prints the result as JSON on stdout. Logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys

from storeprobe.cli import parse_args
from storeprobe.config import Config, load_config
from storeprobe.exceptions import ConfigError
from storeprobe.health import ConnectionHealthCheck, HealthCheckResult, HealthStatus
from storeprobe.logging import get_logger, setup_logging

logger = get_logger(__name__)

EXIT_HEALTHY = 0
EXIT_UNHEALTHY = 1
EXIT_CANCELED = 2
EXIT_CONFIG_ERROR = 3

# CLI option name -> Config field name
_OVERRIDES = {
    "target": "target",
    "login": "login",
    "password": "password",
    "retry_limit": "retry_limit",
    "retry_delay": "retry_delay",
    "timeout": "timeout",
    "failure_status": "failure_status",
    "canceled_status": "canceled_status",
    "log_level": "log_level",
    "json_logs": "log_json",
}


def apply_overrides(config: Config, parsed: argparse.Namespace) -> Config:
    """Return a copy of ``config`` with any CLI options that were given.

    Args:
        config: Configuration loaded from the environment.
        parsed: Parsed command-line arguments.

    Returns:
        The updated configuration.
    """
    changes = {
        field_name: getattr(parsed, option)
        for option, field_name in _OVERRIDES.items()
        if getattr(parsed, option, None) is not None
    }
    return dataclasses.replace(config, **changes) if changes else config


def exit_code_for(result: HealthCheckResult) -> int:
    """Map a health check result to a process exit code."""
    if result.status is HealthStatus.HEALTHY:
        return EXIT_HEALTHY
    if result.status is HealthStatus.CANCELED:
        return EXIT_CANCELED
    return EXIT_UNHEALTHY


def main(args: list[str] | None = None) -> int:
    """Run one health check and return the exit code.

    Args:
        args: Optional command-line arguments. If None, uses sys.argv.

    Returns:
        Process exit code.
    """
    parsed = parse_args(args)
    config = apply_overrides(load_config(parsed.env_file), parsed)
    setup_logging(level=config.log_level, json_format=config.log_json)

    try:
        check = ConnectionHealthCheck.from_config(config)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    credentials = "with" if config.credentials_configured else "without"
    logger.info(f"Probing {config.target} {credentials} credentials (timeout {config.timeout}s)")
    result = asyncio.run(check.check_health())

    output = {"target": config.target, **result.to_dict()}
    print(json.dumps(output), file=sys.stdout)
    return exit_code_for(result)


if __name__ == "__main__":
    sys.exit(main())
