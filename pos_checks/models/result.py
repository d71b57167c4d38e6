"""Models for check execution results."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Outcome of a single timed check.

    ``error`` is only set when the check faulted or timed out. A check that
    worked but breached its threshold fails with ``error`` left unset.
    """

    __test__ = False

    name: str
    passed: bool
    duration_ms: float
    error: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Results never share the mapping the check handed over
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict[str, Any]:
        """Return a plain, serialisable representation."""
        return {
            "name": self.name,
            "passed": self.passed,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True, kw_only=True)
class TestRunSummary:
    """Pass/fail counts derived from an ordered sequence of results."""

    __test__ = False

    total: int
    passed: int
    failed: int

    @classmethod
    def from_results(cls, results: Iterable[TestResult]) -> "TestRunSummary":
        """Count passed and failed results."""
        total = passed = 0
        for result in results:
            total += 1
            if result.passed:
                passed += 1
        return cls(total=total, passed=passed, failed=total - passed)

    @property
    def success_rate(self) -> float:
        """Fraction of passed results, 0.0 for an empty run."""
        if self.total == 0:
            return 0.0
        return self.passed / self.total

    def to_dict(self) -> dict[str, Any]:
        """Return a plain, serialisable representation."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "success_rate": self.success_rate,
        }


@dataclass(frozen=True, kw_only=True)
class BatchResult:
    """Results of one sequential batch together with its own summary."""

    results: Sequence[TestResult]
    summary: TestRunSummary

    @classmethod
    def from_results(cls, results: Sequence[TestResult]) -> "BatchResult":
        """Build a batch result, summarising exactly the given results."""
        return cls(
            results=tuple(results),
            summary=TestRunSummary.from_results(results),
        )

    @property
    def passed(self) -> bool:
        """True when every result in the batch passed."""
        return self.summary.failed == 0
