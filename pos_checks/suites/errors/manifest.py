"""Error handling suite manifest."""

from pos_checks.suites.errors.suite import ErrorHandlingSuite
from pos_checks.suites.manifest import SuiteManifest

errors_manifest = SuiteManifest(
    description="Network failures, validation, retries and storage recovery",
    suite_factory=ErrorHandlingSuite.from_config,
)
