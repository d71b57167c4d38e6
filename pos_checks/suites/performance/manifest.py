"""Performance suite manifest."""

from pos_checks.suites.manifest import SuiteManifest
from pos_checks.suites.performance.suite import PerformanceSuite

performance_manifest = SuiteManifest(
    description="Cache, API, sheet, load, offline and search timings",
    suite_factory=PerformanceSuite.from_config,
)
