"""Module tests running the CLI against a WireMock stubbed POS API."""

import json
from pathlib import Path
from typing import Any

import pytest
from wiremock.client import (
    HttpMethods,
    Mapping,
    MappingRequest,
    MappingResponse,
    Mappings,
)

from pos_checks.cli import EXIT_FAILURES, EXIT_OK, run
from pos_checks.testing import payloads


def stub_action(action: str, body: dict[str, Any]) -> None:
    """Answer GET /exec?action=<action> with the given body."""
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(
                method=HttpMethods.GET,
                url_path="/exec",
                query_parameters={"action": {"equalTo": action}},
            ),
            response=MappingResponse(
                status=200,
                headers={"Content-Type": "application/json"},
                json_body=body,
            ),
        )
    )


@pytest.fixture(autouse=True)
def _reset_mappings(wiremock_server: object) -> None:
    """Start every test without stubs."""
    Mappings.delete_all_mappings()


async def test_performance_suite_passes(api_url: str, tmp_path: Path) -> None:
    """The performance suite passes against a healthy API."""
    stub_action("getBootstrapData", payloads.bootstrap())
    stub_action("getLowStockHTML", payloads.low_stock())
    report_path = tmp_path / "report.json"

    exit_code = await run(
        suite_keys=["performance"],
        config_json=json.dumps({"api_url": api_url}),
        output_path=report_path,
    )

    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert exit_code == EXIT_OK, report
    assert report["total"] == 8
    assert report["suites"]["performance"]["summary"]["passed"] == 8


async def test_api_errors_fail_the_run(api_url: str, tmp_path: Path) -> None:
    """API checks answered with errors make the run fail."""
    stub_action("getBootstrapData", payloads.error_response("Sheet not found"))
    stub_action("getLowStockHTML", payloads.low_stock())
    report_path = tmp_path / "report.json"

    exit_code = await run(
        suite_keys=["api"],
        config_json=json.dumps({"api_url": api_url}),
        output_path=report_path,
    )

    report = json.loads(report_path.read_text(encoding="utf-8"))
    results = {r["name"]: r for r in report["suites"]["api"]["results"]}
    assert exit_code == EXIT_FAILURES
    assert results["endpoint:getBootstrapData"]["passed"] is False
    assert results["endpoint:getLowStockHTML"]["passed"] is True

