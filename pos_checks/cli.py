"""CLI entry point for the POS check runner."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from pos_checks.config import ConfigurationError, load_harness_config
from pos_checks.engine import TimedAssertionEngine
from pos_checks.models.result import BatchResult
from pos_checks.reporting import (
    REPORT_FORMATS,
    ReportFormat,
    format_output,
    log_results_summary,
    render,
)
from pos_checks.suites.loading import (
    SuiteNotFoundError,
    available_suites,
    load_suite_manifest,
)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2


async def run(
    suite_keys: Sequence[str],
    config_json: str = "{}",
    api_url: str | None = None,
    report_format: ReportFormat = "json",
    output_path: Path | None = None,
) -> int:
    """Run the selected suites and return exit code.

    A suite that cannot be created from the config stops the run. The report
    still covers the suites that ran before it, and the exit code is 2.
    """
    log = logging.getLogger("pos_checks")

    try:
        config = load_harness_config(config_json, api_url)
        keys = list(suite_keys) or list(available_suites())
        manifests = {key: load_suite_manifest(key) for key in keys}
    except (ConfigurationError, SuiteNotFoundError) as exc:
        log.error("%s", exc)
        return EXIT_CONFIG_ERROR

    engine = TimedAssertionEngine(config=config.engine_config())
    suite_results: dict[str, BatchResult] = {}
    misconfigured = False

    for key, manifest in manifests.items():
        log.info("Loading suite: %s", key)
        try:
            async with manifest.suite_factory(config) as suite:
                suite_results[key] = await suite.run(engine)
        except ConfigurationError as exc:
            log.error("Suite %s is misconfigured, skipping the rest: %s", key, exc)
            misconfigured = True
            break

    log_results_summary(log, suite_results)

    overall = engine.get_overall_summary()
    report = render(format_output(suite_results, overall), report_format)
    if output_path is None:
        print(report)
    else:
        output_path.write_text(report, encoding="utf-8")
        log.info("Report written to %s", output_path)

    if misconfigured:
        return EXIT_CONFIG_ERROR
    return EXIT_FAILURES if overall.failed else EXIT_OK


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run POS system checks")
    parser.add_argument(
        "--suite",
        action="append",
        default=[],
        help="Suite key to run (api, errors, performance); repeatable, "
        "defaults to every registered suite",
    )
    parser.add_argument(
        "--config",
        default="{}",
        help="JSON configuration for the harness",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="POS API endpoint URL, overrides the configured one",
    )
    parser.add_argument(
        "--format",
        choices=REPORT_FORMATS,
        default="json",
        help="Report format",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="File to write the report to instead of stdout",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            suite_keys=args.suite,
            config_json=args.config,
            api_url=args.api_url,
            report_format=args.format,
            output_path=args.output,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
