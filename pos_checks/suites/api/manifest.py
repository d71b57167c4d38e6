"""API suite manifest."""

from pos_checks.suites.api.suite import ApiSuite
from pos_checks.suites.manifest import SuiteManifest

api_manifest = SuiteManifest(
    description="Endpoint responses, parameter validation and API errors",
    suite_factory=ApiSuite.from_config,
)
