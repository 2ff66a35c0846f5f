"""Tests for the command-line entry point."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from storeprobe.app import (
    EXIT_CANCELED,
    EXIT_CONFIG_ERROR,
    EXIT_HEALTHY,
    EXIT_UNHEALTHY,
    apply_overrides,
    exit_code_for,
    main,
)
from storeprobe.cli import parse_args
from storeprobe.config import Config
from storeprobe.health import ConnectionHealthCheck, HealthCheckResult, HealthStatus
from storeprobe.types import Closed, Connected
from tests.helpers import closed_port, make_config
from tests.mocks import FakeConnectionFactory


class TestParseArgs:
    """Tests for CLI argument parsing."""

    def test_default_args(self) -> None:
        parsed = parse_args([])
        assert parsed.target is None
        assert parsed.login is None
        assert parsed.retry_limit is None
        assert parsed.timeout is None
        assert parsed.json_logs is None
        assert parsed.env_file is None

    def test_all_args(self) -> None:
        parsed = parse_args(
            [
                "tcp://store:1113",
                "--login",
                "admin",
                "--password",
                "changeit",
                "--retry-limit",
                "2",
                "--retry-delay",
                "0.25",
                "--timeout",
                "3",
                "--failure-status",
                "degraded",
                "--canceled-status",
                "canceled",
                "--log-level",
                "DEBUG",
                "--json-logs",
                "--env-file",
                "custom.env",
            ]
        )
        assert parsed.target == "tcp://store:1113"
        assert parsed.login == "admin"
        assert parsed.password == "changeit"
        assert parsed.retry_limit == 2
        assert parsed.retry_delay == 0.25
        assert parsed.timeout == 3.0
        assert parsed.failure_status == "degraded"
        assert parsed.canceled_status == "canceled"
        assert parsed.log_level == "DEBUG"
        assert parsed.json_logs is True
        assert parsed.env_file == Path("custom.env")

    def test_invalid_failure_status(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["--failure-status", "healthy"])


class TestApplyOverrides:
    """Tests for apply_overrides."""

    def test_no_overrides_returns_same_config(self) -> None:
        config = make_config()
        assert apply_overrides(config, parse_args([])) is config

    def test_given_options_replace_fields(self) -> None:
        config = make_config(login="env-user", log_json=False)

        updated = apply_overrides(
            config, parse_args(["tcp://cli:1113", "--retry-limit", "0", "--json-logs"])
        )

        assert updated.target == "tcp://cli:1113"
        assert updated.retry_limit == 0
        assert updated.log_json is True
        assert updated.login == "env-user"


class TestExitCodeFor:
    """Tests for exit_code_for."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (HealthStatus.HEALTHY, EXIT_HEALTHY),
            (HealthStatus.DEGRADED, EXIT_UNHEALTHY),
            (HealthStatus.UNHEALTHY, EXIT_UNHEALTHY),
            (HealthStatus.CANCELED, EXIT_CANCELED),
        ],
    )
    def test_status_mapping(self, status: HealthStatus, expected: int) -> None:
        assert exit_code_for(HealthCheckResult(status=status)) == expected


def run_main(config: Config, args: list[str], factory: FakeConnectionFactory | None = None) -> int:
    """Run main() with a fixed config, optionally swapping in a fake transport."""
    original = ConnectionHealthCheck.from_config

    def build(cfg: Config, connection_factory: Any = None) -> ConnectionHealthCheck:
        return original(cfg, connection_factory=factory)

    with (
        patch("storeprobe.app.load_config", return_value=config),
        patch("storeprobe.app.setup_logging"),
        patch("storeprobe.app.ConnectionHealthCheck.from_config", side_effect=build),
    ):
        return main(args)


class TestMain:
    """Tests for main()."""

    def test_healthy(self, capsys: pytest.CaptureFixture[str]) -> None:
        factory = FakeConnectionFactory(signals_on_connect=[Connected()])

        code = run_main(make_config(target="fake://store"), [], factory)

        assert code == EXIT_HEALTHY
        output = json.loads(capsys.readouterr().out)
        assert output["target"] == "fake://store"
        assert output["status"] == "healthy"

    def test_closed_is_unhealthy(self, capsys: pytest.CaptureFixture[str]) -> None:
        factory = FakeConnectionFactory(signals_on_connect=[Closed("limit reached")])

        code = run_main(make_config(target="fake://store"), [], factory)

        assert code == EXIT_UNHEALTHY
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "unhealthy"
        assert output["description"] == "limit reached"

    def test_degraded_override(self, capsys: pytest.CaptureFixture[str]) -> None:
        factory = FakeConnectionFactory(signals_on_connect=[Closed("limit reached")])

        code = run_main(
            make_config(target="fake://store"), ["--failure-status", "degraded"], factory
        )

        assert code == EXIT_UNHEALTHY
        assert json.loads(capsys.readouterr().out)["status"] == "degraded"

    def test_timeout_as_canceled(self, capsys: pytest.CaptureFixture[str]) -> None:
        factory = FakeConnectionFactory()

        code = run_main(
            make_config(target="fake://store", timeout=0.05, canceled_status="canceled"),
            [],
            factory,
        )

        assert code == EXIT_CANCELED
        assert json.loads(capsys.readouterr().out)["status"] == "canceled"

    def test_unreachable_target(self, capsys: pytest.CaptureFixture[str]) -> None:
        config = make_config(target=f"tcp://127.0.0.1:{closed_port()}", retry_limit=0)

        code = run_main(config, [])

        assert code == EXIT_UNHEALTHY
        assert "Reconnection limit reached" in json.loads(capsys.readouterr().out)["description"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"target": ""},
            {"target": "http://localhost:2113"},
            {"login": "admin"},
            {"retry_limit": -1},
        ],
    )
    def test_config_error(
        self, overrides: dict[str, Any], capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = run_main(make_config(**overrides), [])

        assert code == EXIT_CONFIG_ERROR
        assert capsys.readouterr().out == ""

    def test_negative_timeout_is_config_error(self) -> None:
        assert run_main(make_config(), ["--timeout", "-1"]) == EXIT_CONFIG_ERROR

    @pytest.mark.parametrize("timeout", ["nan", "inf"])
    def test_non_finite_timeout_is_config_error(self, timeout: str) -> None:
        assert run_main(make_config(), ["--timeout", timeout]) == EXIT_CONFIG_ERROR

    @pytest.mark.parametrize(
        ("overrides", "expected"),
        [
            ({}, "without credentials"),
            ({"login": "admin", "password": "changeit"}, "with credentials"),
        ],
    )
    def test_logs_whether_credentials_are_configured(
        self, overrides: dict[str, Any], expected: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        factory = FakeConnectionFactory(signals_on_connect=[Connected()])

        with caplog.at_level(logging.INFO, logger="storeprobe"):
            run_main(make_config(target="fake://store", **overrides), [], factory)

        assert f"Probing fake://store {expected}" in caplog.text
