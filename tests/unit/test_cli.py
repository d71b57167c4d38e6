"""Tests for CLI module."""

import json
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from pos_checks.cli import EXIT_CONFIG_ERROR, EXIT_FAILURES, EXIT_OK, run
from pos_checks.config import ConfigurationError, HarnessConfig
from pos_checks.models.check import NamedCheck
from pos_checks.suites.base import CheckSuite
from pos_checks.suites.loading import SuiteNotFoundError
from pos_checks.suites.manifest import SuiteManifest


class StaticSuite(CheckSuite):
    """Suite returning fixed outcomes."""

    key = "static"

    def __init__(self, outcomes: Sequence[bool]) -> None:
        self.outcomes = outcomes

    def checks(self) -> Sequence[NamedCheck]:
        return [
            NamedCheck(name=f"check-{i}", check=lambda *, outcome=outcome: outcome)
            for i, outcome in enumerate(self.outcomes)
        ]


def static_manifest(*outcomes: bool) -> SuiteManifest:
    """Create a manifest whose suite yields the given outcomes."""

    @asynccontextmanager
    async def factory(config: HarnessConfig) -> AsyncGenerator[CheckSuite, None]:
        yield StaticSuite(outcomes)

    return SuiteManifest(description="static", suite_factory=factory)


class TestRun:
    """Tests for run function."""

    async def test_returns_zero_when_all_checks_pass(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Returns 0 and prints the JSON report when every check passes."""
        with patch(
            "pos_checks.cli.load_suite_manifest",
            return_value=static_manifest(True, True),
        ) as mock_load:
            exit_code = await run(suite_keys=["static"])

        assert exit_code == EXIT_OK
        mock_load.assert_called_once_with("static")
        output = json.loads(capsys.readouterr().out)
        assert output["total"] == 2
        assert output["passed"] == 2
        assert output["suites"]["static"]["summary"]["failed"] == 0

    async def test_returns_one_when_check_fails(self) -> None:
        """Returns 1 when any check fails."""
        with patch(
            "pos_checks.cli.load_suite_manifest",
            return_value=static_manifest(True, False),
        ):
            exit_code = await run(suite_keys=["static"])

        assert exit_code == EXIT_FAILURES

    async def test_runs_every_suite_by_default(self) -> None:
        """Without suite keys every registered suite is loaded."""
        with (
            patch(
                "pos_checks.cli.available_suites", return_value=["one", "two"]
            ),
            patch(
                "pos_checks.cli.load_suite_manifest",
                return_value=static_manifest(True),
            ) as mock_load,
        ):
            exit_code = await run(suite_keys=[])

        assert exit_code == EXIT_OK
        assert [c.args[0] for c in mock_load.call_args_list] == ["one", "two"]

    async def test_writes_report_to_file(self, tmp_path: Path) -> None:
        """Writes the report in the requested format to the output file."""
        report_path = tmp_path / "report.csv"

        with patch(
            "pos_checks.cli.load_suite_manifest",
            return_value=static_manifest(True),
        ):
            exit_code = await run(
                suite_keys=["static"], report_format="csv", output_path=report_path
            )

        assert exit_code == EXIT_OK
        lines = report_path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "suite,name,passed,duration_ms,error,metadata"
        assert lines[1].startswith("static,check-0,True,")

    async def test_invalid_config_returns_two(self) -> None:
        """Returns 2 without loading suites when the config is invalid."""
        with patch("pos_checks.cli.load_suite_manifest") as mock_load:
            exit_code = await run(suite_keys=["static"], config_json="{not json")

        assert exit_code == EXIT_CONFIG_ERROR
        mock_load.assert_not_called()

    async def test_unknown_suite_returns_two(self) -> None:
        """Returns 2 when a suite is not registered."""
        with patch(
            "pos_checks.cli.load_suite_manifest",
            side_effect=SuiteNotFoundError("Suite 'nope' not found"),
        ):
            exit_code = await run(suite_keys=["nope"])

        assert exit_code == EXIT_CONFIG_ERROR

    async def test_misconfigured_suite_returns_two(self) -> None:
        """Returns 2 when a suite cannot be created from the config."""
        manifest = Mock()
        manifest.suite_factory = Mock(
            side_effect=ConfigurationError("API URL not configured")
        )

        with patch("pos_checks.cli.load_suite_manifest", return_value=manifest):
            exit_code = await run(suite_keys=["api"])

        assert exit_code == EXIT_CONFIG_ERROR

    async def test_misconfigured_later_suite_keeps_earlier_results(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Suites that ran before a misconfigured one are still reported."""
        broken = Mock()
        broken.suite_factory = Mock(
            side_effect=ConfigurationError("API URL not configured")
        )
        manifests = {"static": static_manifest(True), "api": broken, "late": Mock()}

        with patch("pos_checks.cli.load_suite_manifest", side_effect=manifests.get):
            exit_code = await run(suite_keys=["static", "api", "late"])

        assert exit_code == EXIT_CONFIG_ERROR
        manifests["late"].suite_factory.assert_not_called()
        output = json.loads(capsys.readouterr().out)
        assert list(output["suites"]) == ["static"]
        assert output["total"] == 1

    async def test_api_url_passed_to_suites(self) -> None:
        """The API URL option overrides the configured URL."""
        configs: list[HarnessConfig] = []

        @asynccontextmanager
        async def factory(config: HarnessConfig) -> AsyncGenerator[CheckSuite, None]:
            configs.append(config)
            yield StaticSuite([True])

        with patch(
            "pos_checks.cli.load_suite_manifest",
            return_value=SuiteManifest(description="static", suite_factory=factory),
        ):
            await run(
                suite_keys=["static"],
                config_json='{"api_url": "https://old.example.test"}',
                api_url="https://pos.example.test/exec",
            )

        assert configs[0].api_url == "https://pos.example.test/exec"

    async def test_missing_api_url_returns_two(self) -> None:
        """Registered suites needing the API refuse to run without its URL."""
        exit_code = await run(suite_keys=["performance"])

        assert exit_code == EXIT_CONFIG_ERROR
