"""Abstract base class for check suites."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar

from pos_checks.engine import TimedAssertionEngine
from pos_checks.models.check import NamedCheck
from pos_checks.models.result import BatchResult

log = logging.getLogger(__name__)


class CheckSuite(ABC):
    """An ordered group of checks run as a single sequential batch.

    Checks of a suite may share storage keys or server records, so they are
    always handed to the engine as one batch and never interleaved.
    """

    key: ClassVar[str]

    @abstractmethod
    def checks(self) -> Sequence[NamedCheck]:
        """Return the checks of this suite in execution order."""

    async def run(self, engine: TimedAssertionEngine) -> BatchResult:
        """Run every check of the suite through the engine."""
        checks = self.checks()
        log.info("Running suite %s (%d check(s))", self.key, len(checks))
        return await engine.run_batch(checks)
