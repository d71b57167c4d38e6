"""API suite module."""

from pos_checks.suites.api.endpoints import ENDPOINTS, Endpoint
from pos_checks.suites.api.manifest import api_manifest
from pos_checks.suites.api.suite import ApiSuite

__all__ = ["ENDPOINTS", "ApiSuite", "Endpoint", "api_manifest"]
