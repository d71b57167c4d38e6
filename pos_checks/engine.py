"""Timed assertion engine: runs checks, times them and records results."""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from pos_checks.config import ConfigurationError, EngineConfig
from pos_checks.models.check import CheckFn, CheckOptions, CheckOutcome, NamedCheck
from pos_checks.models.result import BatchResult, TestResult, TestRunSummary

log = logging.getLogger(__name__)

TIMEOUT_ERROR = "timeout"

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

type BatchEntry = (
    NamedCheck
    | tuple[str, CheckFn]
    | tuple[str, CheckFn, CheckOptions | Mapping[str, Any] | None]
)


class CheckTimeoutError(Exception):
    """Raised internally when a check exceeds its timeout."""


def monotonic_ms() -> float:
    """Return a monotonic timestamp in milliseconds."""
    return time.perf_counter_ns() / 1_000_000


@dataclass(frozen=True, kw_only=True)
class _PreparedCheck:
    name: str
    check: CheckFn
    threshold_ms: float | None
    timeout_ms: float | None


@dataclass(frozen=True, kw_only=True)
class TimedAssertionEngine:
    """Runs checks one at a time and accumulates their results.

    The configuration is fixed at construction. The accumulated results
    belong to this instance only, so independent test sessions must use
    independent engines.
    """

    config: EngineConfig = field(default_factory=EngineConfig)
    clock: Callable[[], float] = field(default=monotonic_ms, repr=False)
    _results: list[TestResult] = field(default_factory=list, init=False, repr=False)

    @property
    def results(self) -> Sequence[TestResult]:
        """Snapshot of every accumulated result, in execution order."""
        return tuple(self._results)

    async def run_check(
        self,
        name: str,
        check: CheckFn,
        options: CheckOptions | Mapping[str, Any] | None = None,
    ) -> TestResult:
        """Run a single check and record its result.

        Args:
            name: Non-empty check name
            check: Callable taking no arguments, or whose first positional
                parameter receives the cancellation signal, even when that
                parameter has a default. It may return an awaitable.
            options: Threshold, timeout or threshold category for this check

        Returns:
            The recorded result

        Raises:
            ConfigurationError: If the name or options are invalid. Nothing
                raised by the check itself escapes.

        """
        return await self._execute(self._prepare(name, check, options))

    async def run_batch(self, checks: Iterable[BatchEntry]) -> BatchResult:
        """Run checks strictly one after another.

        Checks in a batch may share external state (a storage key, a server
        record), so they never overlap. Every entry is validated before the
        first one runs.
        """
        prepared = [self._prepare(*_unpack(entry)) for entry in checks]

        results: list[TestResult] = []
        for item in prepared:
            results.append(await self._execute(item))

        batch = BatchResult.from_results(results)
        log.info(
            "Batch completed: total=%d passed=%d failed=%d",
            batch.summary.total,
            batch.summary.passed,
            batch.summary.failed,
        )
        return batch

    def get_overall_summary(self) -> TestRunSummary:
        """Summarise every result since creation or the last reset."""
        return TestRunSummary.from_results(self._results)

    def reset(self) -> None:
        """Discard accumulated results, keeping the configuration."""
        self._results.clear()

    def _prepare(
        self,
        name: str,
        check: CheckFn,
        options: CheckOptions | Mapping[str, Any] | None,
    ) -> _PreparedCheck:
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("Check name must be a non-empty string")
        if not callable(check):
            raise ConfigurationError(f"Check '{name}' is not callable")

        resolved = _resolve_options(name, options)

        threshold_ms = resolved.threshold_ms
        if threshold_ms is None and resolved.category is not None:
            threshold_ms = self.config.threshold_for(resolved.category)

        timeout_ms = resolved.timeout_ms
        if timeout_ms is None:
            timeout_ms = self.config.timeout_ms

        return _PreparedCheck(
            name=name,
            check=check,
            threshold_ms=threshold_ms,
            timeout_ms=timeout_ms,
        )

    async def _execute(self, item: _PreparedCheck) -> TestResult:
        signal = asyncio.Event()
        start = self.clock()
        try:
            outcome = await _settle(item.check, signal, item.timeout_ms)
        except CheckTimeoutError:
            result = TestResult(
                name=item.name,
                passed=False,
                duration_ms=self.clock() - start,
                error=TIMEOUT_ERROR,
            )
        except asyncio.CancelledError as exc:
            # Only a cancellation aimed at the engine's own task propagates
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            result = TestResult(
                name=item.name,
                passed=False,
                duration_ms=self.clock() - start,
                error=_describe(exc),
            )
        except Exception as exc:
            result = TestResult(
                name=item.name,
                passed=False,
                duration_ms=self.clock() - start,
                error=_describe(exc),
            )
        else:
            duration_ms = self.clock() - start
            within_threshold = item.threshold_ms is None or (
                duration_ms < item.threshold_ms
            )
            result = TestResult(
                name=item.name,
                passed=outcome.passed and within_threshold,
                duration_ms=duration_ms,
                metadata=outcome.metadata,
            )

        self._results.append(result)
        log.info(
            "Check %s: %s (%.2fms)%s",
            result.name,
            "passed" if result.passed else "failed",
            result.duration_ms,
            f" error={result.error}" if result.error else "",
        )
        return result


def _unpack(
    entry: BatchEntry,
) -> tuple[str, CheckFn, CheckOptions | Mapping[str, Any] | None]:
    if isinstance(entry, NamedCheck):
        return entry.name, entry.check, entry.options
    if isinstance(entry, tuple) and len(entry) == 2:
        return entry[0], entry[1], None
    if isinstance(entry, tuple) and len(entry) == 3:
        return entry
    raise ConfigurationError(
        f"Batch entries must be NamedCheck or (name, check[, options]), "
        f"got {entry!r}"
    )


def _resolve_options(
    name: str, options: CheckOptions | Mapping[str, Any] | None
) -> CheckOptions:
    if options is None:
        return CheckOptions()
    if isinstance(options, CheckOptions):
        return options
    try:
        return CheckOptions.model_validate(options)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid options for check '{name}': {exc}"
        ) from exc


def _accepts_signal(check: CheckFn) -> bool:
    """Tell whether the check's first parameter is positional."""
    try:
        parameters = list(inspect.signature(check).parameters.values())
    except (TypeError, ValueError):
        return False
    return bool(parameters) and parameters[0].kind in _POSITIONAL


async def _settle(
    check: CheckFn, signal: asyncio.Event, timeout_ms: float | None
) -> CheckOutcome:
    """Invoke the check and wait for it, racing awaitables against the timeout.

    A synchronous check cannot be interrupted; it is reported as timed out
    when it alone used up the budget.
    """
    loop = asyncio.get_running_loop()
    deadline = None if timeout_ms is None else loop.time() + timeout_ms / 1000

    value = check(signal) if _accepts_signal(check) else check()

    if not inspect.isawaitable(value):
        if deadline is not None and loop.time() >= deadline:
            raise CheckTimeoutError
        return _to_outcome(value)

    if deadline is None:
        return _to_outcome(await value)

    task = asyncio.ensure_future(value)
    done, _ = await asyncio.wait({task}, timeout=max(deadline - loop.time(), 0))
    if task in done:
        return _to_outcome(task.result())

    signal.set()
    task.cancel()
    task.add_done_callback(_discard_late_settlement)
    raise CheckTimeoutError


def _discard_late_settlement(task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        return
    if (exc := task.exception()) is not None:
        log.debug("Ignoring failure of timed out check: %s", exc)
    else:
        log.debug("Ignoring late result of timed out check")


def _to_outcome(value: object) -> CheckOutcome:
    if isinstance(value, CheckOutcome):
        return value
    if value is None:
        return CheckOutcome(passed=True)
    return CheckOutcome(passed=bool(value))


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
