"""Performance suite module."""

from pos_checks.suites.performance.manifest import performance_manifest
from pos_checks.suites.performance.suite import PerformanceSuite

__all__ = ["PerformanceSuite", "performance_manifest"]
