"""Structured logging for store-probe.

Log records may carry probe context (``target``, ``probe_id`` and ``state``)
through ``extra`` or a ``ContextAdapter``. Both formatters render whatever
context is present. All output goes to stderr; stdout carries the result.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import MutableMapping
from datetime import UTC, datetime
from typing import Any

PROBE_CONTEXT = ("target", "probe_id", "state")
SUMMARY_FIELDS = ("status", "latency_ms")

_SUMMARY_LEVELS = {
    "healthy": logging.INFO,
    "canceled": logging.WARNING,
}


def _component(record: logging.LogRecord) -> str:
    """Last dotted segment of the logger name, e.g. ``probe``."""
    return record.name.rpartition(".")[2]


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=UTC)


def _fields(record: logging.LogRecord, names: tuple[str, ...]) -> dict[str, Any]:
    return {name: getattr(record, name) for name in names if hasattr(record, name)}


class StructuredFormatter(logging.Formatter):
    """Human-readable single-line formatter.

    Example:
        2024-01-28 12:00:00.123 [DEBUG   ] [probe     ] [target=tcp://db:1113 state=racing] ...
    """

    def format(self, record: logging.LogRecord) -> str:
        stamp = _record_time(record).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        line = f"{stamp} [{record.levelname:8}] [{_component(record):10}]"

        context = _fields(record, PROBE_CONTEXT)
        if context:
            line += " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"

        line += f" {record.getMessage()}"
        if record.exc_info:
            line += f" {self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
            **_fields(record, PROBE_CONTEXT + SUMMARY_FIELDS),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextAdapter(logging.LoggerAdapter[logging.Logger]):
    """Adapter that stamps fixed context onto every record.

    Per-call ``extra`` is kept; the adapter's own context is applied on top.

    Usage:
        log = get_logger(__name__).with_context(target="tcp://localhost:1113")
        log.debug("Connect requested", extra={"state": "connecting"})
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **(self.extra or {})}
        return msg, kwargs


class ProbeLogger(logging.Logger):
    """Logger class installed for the whole process by this module."""

    def with_context(self, **context: Any) -> ContextAdapter:
        return ContextAdapter(self, context)


logging.setLoggerClass(ProbeLogger)


def get_logger(name: str) -> ProbeLogger:
    """Return the ``ProbeLogger`` registered under ``name``."""
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    replace_handlers: bool = True,
) -> None:
    """Install a stderr handler on the root logger.

    Args:
        level: Level name. Unknown names fall back to INFO.
        json_format: Emit JSON lines instead of the structured text format.
        replace_handlers: Drop handlers already on the root logger first.
            Pass False to keep handlers installed by an embedding application.
    """
    numeric_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    formatter = JSONFormatter() if json_format else StructuredFormatter()

    root = logging.getLogger()
    if replace_handlers:
        for existing in list(root.handlers):
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    root.setLevel(numeric_level)
    logging.getLogger("storeprobe").setLevel(numeric_level)


def log_probe_summary(
    logger: logging.Logger | ContextAdapter,
    target: str,
    status: str,
    latency_ms: float,
    description: str | None = None,
) -> None:
    """Log one line describing a finished health check.

    Healthy checks log at INFO, canceled ones at WARNING, and every other
    status at ERROR. The record carries ``target``, ``status`` and
    ``latency_ms`` for the JSON formatter.
    """
    message = f"Health check for {target} finished {status} in {latency_ms:.2f}ms"
    if description:
        message += f": {description}"
    logger.log(
        _SUMMARY_LEVELS.get(status, logging.ERROR),
        message,
        extra={"target": target, "status": status, "latency_ms": round(latency_ms, 2)},
    )
