"""Tests for the command-line entry point."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from loadreport.config import LoadTestConfig
from loadreport.errors import ConfigError, ReportIOError
from loadreport.models import MeasurementResult
from loadreport.pipeline import RunSummary, ScenarioRun
from loadreport.runner import cli


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch("loadreport.runner.setup_logging") as mock_setup:
        yield mock_setup


def _summary(make_result: Callable[..., MeasurementResult], error: str | None = None) -> RunSummary:
    config = LoadTestConfig(name="checkout", url="http://x")
    run = ScenarioRun(
        config=config,
        result=make_result(),
        report_path=None if error else Path("reports/checkout-1.pdf"),
        error=error,
    )
    return RunSummary(runs=[run])


class TestRunCommand:
    """Exit codes follow the run outcome."""

    @patch("loadreport.runner.run_all")
    def test_success(
        self, mock_run_all: MagicMock, make_result: Callable[..., MeasurementResult]
    ) -> None:
        mock_run_all.return_value = _summary(make_result)

        result = CliRunner().invoke(cli, ["run", "scenarios.json"])

        assert result.exit_code == 0
        assert "checkout" in result.output
        settings = mock_run_all.call_args.args[0]
        assert mock_run_all.call_args.kwargs["config_path"] == Path("scenarios.json")
        assert settings.log_level == "INFO"

    @patch("loadreport.runner.run_all")
    def test_output_dir_override(
        self, mock_run_all: MagicMock, make_result: Callable[..., MeasurementResult]
    ) -> None:
        mock_run_all.return_value = _summary(make_result)

        CliRunner().invoke(cli, ["run", "--output-dir", "out"])

        settings = mock_run_all.call_args.args[0]
        assert settings.output.reports_dir == Path("out")
        assert settings.output.results_dir == Path("out") / "json"

    @pytest.mark.parametrize(
        "error", [ConfigError("Error loading config"), ReportIOError("reports", "denied")]
    )
    def test_fatal_errors_exit_1(self, error: Exception) -> None:
        with patch("loadreport.runner.run_all", side_effect=error):
            result = CliRunner().invoke(cli, ["run"])

        assert result.exit_code == 1

    @patch("loadreport.runner.run_all")
    def test_partial_failure_exits_2(
        self, mock_run_all: MagicMock, make_result: Callable[..., MeasurementResult]
    ) -> None:
        mock_run_all.return_value = _summary(make_result, error="Rendering failed")

        result = CliRunner().invoke(cli, ["run"])

        assert result.exit_code == 2


class TestRenderCommand:
    @patch("loadreport.runner.rerender")
    def test_render(self, mock_rerender: MagicMock, tmp_path: Path) -> None:
        saved = tmp_path / "result.json"
        saved.write_text("{}")
        mock_rerender.return_value = tmp_path / "result.pdf"

        result = CliRunner().invoke(cli, ["render", str(saved), "--name", "replay"])

        assert result.exit_code == 0
        assert mock_rerender.call_args.kwargs["name"] == "replay"

    def test_missing_file(self) -> None:
        result = CliRunner().invoke(cli, ["render", "does-not-exist.json"])

        assert result.exit_code == 2

    def test_corrupt_result_exits_1(self, tmp_path: Path) -> None:
        saved = tmp_path / "result.json"
        saved.write_text("{\"latency\": ")

        result = CliRunner().invoke(cli, ["render", str(saved)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)


class TestServeCommand:
    @patch("loadreport.runner.run_api_server")
    def test_overrides_bind(self, mock_server: MagicMock) -> None:
        result = CliRunner().invoke(cli, ["serve", "--host", "127.0.0.1", "--port", "8099"])

        assert result.exit_code == 0
        settings = mock_server.call_args.args[0]
        assert (settings.api.host, settings.api.port) == ("127.0.0.1", 8099)

