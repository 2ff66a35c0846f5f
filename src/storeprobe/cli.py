"""Command-line interface argument parsing for store-probe.

This module provides the CLI argument parser that handles:
- Target and credential overrides
- Reconnection knobs
- Timeout and reported status overrides
- Log level and format
- Environment file specification
"""

from __future__ import annotations

import argparse
from pathlib import Path


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace. Every option defaults to None so that
        unset options fall back to the environment configuration.
    """
    parser = argparse.ArgumentParser(
        prog="store-probe",
        description="Probe an event store by opening a short-lived connection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "exit codes:\n"
            "  0  healthy\n"
            "  1  unhealthy or degraded\n"
            "  2  canceled or timed out\n"
            "  3  invalid configuration"
        ),
    )

    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Connection target, e.g. tcp://localhost:1113 (overrides STOREPROBE_TARGET)",
    )

    parser.add_argument("--login", default=None, help="Login (overrides STOREPROBE_LOGIN)")

    parser.add_argument(
        "--password",
        default=None,
        help="Password (overrides STOREPROBE_PASSWORD)",
    )

    parser.add_argument(
        "--retry-limit",
        type=int,
        default=None,
        help="Reconnections before giving up (overrides STOREPROBE_RETRY_LIMIT)",
    )

    parser.add_argument(
        "--retry-delay",
        type=float,
        default=None,
        help="Seconds between reconnections (overrides STOREPROBE_RETRY_DELAY)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before the probe is canceled (overrides STOREPROBE_TIMEOUT)",
    )

    parser.add_argument(
        "--failure-status",
        choices=["unhealthy", "degraded"],
        default=None,
        help="Status reported for a failed probe (overrides STOREPROBE_FAILURE_STATUS)",
    )

    parser.add_argument(
        "--canceled-status",
        choices=["unhealthy", "degraded", "canceled"],
        default=None,
        help="Status reported for a canceled probe (overrides STOREPROBE_CANCELED_STATUS)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides STOREPROBE_LOG_LEVEL)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="Emit JSON log lines (overrides STOREPROBE_LOG_JSON)",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
