"""Rendering of suite results as JSON, CSV or HTML."""

import csv
import io
import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

from jinja2 import Environment, FileSystemLoader, select_autoescape

from pos_checks.models.result import BatchResult, TestResult, TestRunSummary

type ReportFormat = Literal["json", "csv", "html"]

REPORT_FORMATS: tuple[ReportFormat, ...] = ("json", "csv", "html")
CSV_COLUMNS = ("suite", "name", "passed", "duration_ms", "error", "metadata")
TEMPLATE_DIR = Path(__file__).parent / "templates"

STATUS_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
    "error": "❗",
    "timeout": "⏱️",
}


def _status(passed: bool, error: str | None) -> str:
    if passed:
        return "passed"
    if error == "timeout":
        return "timeout"
    if error:
        return "error"
    return "failed"


def log_results_summary(
    log: logging.Logger, suite_results: Mapping[str, BatchResult]
) -> None:
    """Log a formatted summary of every check result."""
    log.info("=" * 80)
    log.info("Check Results Summary:")
    log.info("=" * 80)

    for key, batch in suite_results.items():
        for result in batch.results:
            status = _status(result.passed, result.error)
            log.info(
                "%s %s/%s: %s (%.2fms)",
                STATUS_SYMBOLS[status],
                key,
                result.name,
                status,
                result.duration_ms,
            )
            if result.error:
                log.info("  Error: %s", result.error)


def response_times(results: Sequence[TestResult]) -> dict[str, Any]:
    """Average, slowest and fastest duration over the given results.

    Args:
        results: Results in execution order

    Returns:
        ``average_ms`` rounded to two decimals, and ``slowest`` and
        ``fastest`` as name and duration, or None when there are no results.
        Ties go to the earliest result.

    """
    if not results:
        return {"average_ms": 0.0, "slowest": None, "fastest": None}

    slowest = max(results, key=lambda result: result.duration_ms)
    fastest = min(results, key=lambda result: result.duration_ms)
    average = sum(result.duration_ms for result in results) / len(results)
    return {
        "average_ms": round(average, 2),
        "slowest": {"name": slowest.name, "duration_ms": slowest.duration_ms},
        "fastest": {"name": fastest.name, "duration_ms": fastest.duration_ms},
    }


def format_output(
    suite_results: Mapping[str, BatchResult], overall: TestRunSummary
) -> dict[str, Any]:
    """Format suite results for serialisation."""
    return {
        **overall.to_dict(),
        "suites": {
            key: {
                "summary": batch.summary.to_dict(),
                "response_times": response_times(batch.results),
                "results": [result.to_dict() for result in batch.results],
            }
            for key, batch in suite_results.items()
        },
    }


def render_json(output: Mapping[str, Any]) -> str:
    return json.dumps(output, indent=2, default=str)


def render_csv(output: Mapping[str, Any]) -> str:
    """One row per check result; metadata is embedded as JSON."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for key, suite in output["suites"].items():
        for result in suite["results"]:
            writer.writerow(
                {
                    "suite": key,
                    "name": result["name"],
                    "passed": result["passed"],
                    "duration_ms": f"{result['duration_ms']:.3f}",
                    "error": result["error"] or "",
                    "metadata": json.dumps(result["metadata"], default=str),
                }
            )
    return buffer.getvalue()


def render_html(output: Mapping[str, Any]) -> str:
    """Render a self-contained HTML report."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "j2"]),
    )
    template = env.get_template("report.html.j2")
    return template.render(output=output, symbols=STATUS_SYMBOLS, status=_status)


def render(output: Mapping[str, Any], report_format: ReportFormat) -> str:
    """Render output in the requested format.

    Raises:
        ValueError: If the format is not supported

    """
    renderers = {"json": render_json, "csv": render_csv, "html": render_html}
    try:
        renderer = renderers[report_format]
    except KeyError:
        raise ValueError(f"Unsupported report format: {report_format}") from None
    return renderer(output)
