"""Suite manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pos_checks.config import HarnessConfig
from pos_checks.suites.base import CheckSuite


@dataclass(frozen=True, kw_only=True)
class SuiteManifest:
    """Manifest describing a suite plugin.

    The factory is only entered when the suite is selected, so suites that
    need an API client do not open sessions for runs that skip them.
    """

    description: str
    suite_factory: Callable[[HarnessConfig], AbstractAsyncContextManager[CheckSuite]]
