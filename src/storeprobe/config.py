"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from storeprobe.types import DEFAULT_RETRY_DELAY, DEFAULT_RETRY_LIMIT

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Statuses a failed probe may be reported as
VALID_FAILURE_STATUSES = frozenset({"unhealthy", "degraded"})

# Statuses a canceled probe may be reported as; "" means "same as failure"
VALID_CANCELED_STATUSES = frozenset({"", "unhealthy", "degraded", "canceled"})

DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation. Target and credentials are validated when the probe is
    built, not here.
    """

    # Probe target
    target: str = ""  # e.g., "tcp://localhost:1113"
    login: str = ""
    password: str = ""

    # Reconnection knobs
    retry_limit: int = DEFAULT_RETRY_LIMIT
    retry_delay: float = DEFAULT_RETRY_DELAY  # seconds

    # Health check
    timeout: float = DEFAULT_TIMEOUT  # seconds, enforced through cancellation
    failure_status: str = "unhealthy"
    canceled_status: str = ""  # empty = report cancellation as failure_status

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def credentials_configured(self) -> bool:
        """Check if both login and password are set."""
        return bool(self.login and self.password)


def _parse_non_negative_int(value: str, name: str, default: int) -> int:
    """Parse a string as a non-negative integer with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed integer, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = int(value)
        if parsed < 0:
            logging.warning(
                "Invalid %s: %d is negative, using default %d",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _parse_non_negative_float(value: str, name: str, default: float) -> float:
    """Parse a string as a non-negative float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed non-negative float, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = float(value)
        if not math.isfinite(parsed):
            logging.warning(
                "Invalid %s: '%s' is not a finite number, using default %f",
                name,
                value,
                default,
            )
            return default
        if parsed < 0:
            logging.warning(
                "Invalid %s: %f is negative, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _parse_positive_float(value: str, name: str, default: float) -> float:
    """Parse a string as a strictly positive float.

    Logs a warning and returns the default if the value is invalid.
    """
    parsed = _parse_non_negative_float(value, name, default)
    if parsed == 0:
        logging.warning("Invalid %s: must be positive, using default %f", name, default)
        return default
    return parsed


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.

    Logs a warning if the value is invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid STOREPROBE_LOG_LEVEL: '%s' is not valid, using default '%s'. Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _validate_status(value: str, name: str, valid: frozenset[str], default: str) -> str:
    """Validate and normalize a reported status name.

    Returns:
        The lowercase status, or the default if invalid.
    """
    normalized = value.strip().lower()
    if normalized not in valid:
        logging.warning(
            "Invalid %s: '%s' is not valid, using default '%s'. Valid values: %s",
            name,
            value,
            default,
            ", ".join(repr(v) for v in sorted(valid)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Args:
        value: The string value to parse.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Values are validated and defaults are used for invalid inputs:
    - STOREPROBE_RETRY_LIMIT must be a non-negative integer
    - STOREPROBE_RETRY_DELAY must be a non-negative number
    - STOREPROBE_TIMEOUT must be a positive number
    - STOREPROBE_LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    retry_limit = _parse_non_negative_int(
        os.getenv("STOREPROBE_RETRY_LIMIT", str(DEFAULT_RETRY_LIMIT)),
        "STOREPROBE_RETRY_LIMIT",
        DEFAULT_RETRY_LIMIT,
    )
    retry_delay = _parse_non_negative_float(
        os.getenv("STOREPROBE_RETRY_DELAY", str(DEFAULT_RETRY_DELAY)),
        "STOREPROBE_RETRY_DELAY",
        DEFAULT_RETRY_DELAY,
    )
    timeout = _parse_positive_float(
        os.getenv("STOREPROBE_TIMEOUT", str(DEFAULT_TIMEOUT)),
        "STOREPROBE_TIMEOUT",
        DEFAULT_TIMEOUT,
    )

    failure_status = _validate_status(
        os.getenv("STOREPROBE_FAILURE_STATUS", "unhealthy"),
        "STOREPROBE_FAILURE_STATUS",
        VALID_FAILURE_STATUSES,
        "unhealthy",
    )
    canceled_status = _validate_status(
        os.getenv("STOREPROBE_CANCELED_STATUS", ""),
        "STOREPROBE_CANCELED_STATUS",
        VALID_CANCELED_STATUSES,
        "",
    )

    log_level = _validate_log_level(os.getenv("STOREPROBE_LOG_LEVEL", "INFO"))
    log_json = _parse_bool(os.getenv("STOREPROBE_LOG_JSON", ""))

    return Config(
        target=os.getenv("STOREPROBE_TARGET", ""),
        login=os.getenv("STOREPROBE_LOGIN", ""),
        password=os.getenv("STOREPROBE_PASSWORD", ""),
        retry_limit=retry_limit,
        retry_delay=retry_delay,
        timeout=timeout,
        failure_status=failure_status,
        canceled_status=canceled_status,
        log_level=log_level,
        log_json=log_json,
    )
