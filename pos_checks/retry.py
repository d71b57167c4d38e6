"""Retry with exponential backoff, layered on top of the engine."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pos_checks.engine import TimedAssertionEngine
from pos_checks.models.check import CheckFn, CheckOptions
from pos_checks.models.result import TestResult

log = logging.getLogger(__name__)

type Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, kw_only=True)
class RetryPolicy:
    """Configurable retry policy with exponential backoff."""

    max_retries: int = 3
    initial_delay_ms: float = 1000
    backoff_factor: float = 2.0
    max_delay_ms: float = 30000

    def get_delay_ms(self, attempt: int) -> float:
        """Calculate delay for a given retry attempt (0-indexed).

        Args:
            attempt: Current attempt number (0 = first retry).

        Returns:
            Delay in milliseconds before the next retry.

        """
        delay = self.initial_delay_ms * (self.backoff_factor**attempt)
        return min(delay, self.max_delay_ms)

    def delays_ms(self) -> Sequence[float]:
        """Every delay the policy would wait, in order."""
        return [self.get_delay_ms(attempt) for attempt in range(self.max_retries)]


async def _sleep_ms(sleep: Sleep, delay_ms: float) -> None:
    await sleep(delay_ms / 1000)


async def retry_async[T](
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await the operation until it succeeds or the policy gives up.

    Raises:
        Exception: The last error raised by the operation

    """
    for attempt in range(policy.max_retries + 1):
        try:
            return await operation()
        except Exception as exc:
            if attempt >= policy.max_retries:
                raise
            delay_ms = policy.get_delay_ms(attempt)
            log.warning(
                "Attempt %d failed (%s), retrying in %.0fms",
                attempt + 1,
                exc,
                delay_ms,
            )
            await _sleep_ms(sleep, delay_ms)

    raise AssertionError("unreachable")  # pragma: no cover


async def run_with_retry(
    engine: TimedAssertionEngine,
    name: str,
    check: CheckFn,
    options: CheckOptions | Mapping[str, Any] | None = None,
    policy: RetryPolicy | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> TestResult:
    """Run a check through the engine again until it passes.

    Each attempt is a separate engine run and is recorded as such. The last
    attempt's result is returned.
    """
    policy = policy or RetryPolicy()
    result = await engine.run_check(name, check, options)
    for attempt in range(policy.max_retries):
        if result.passed:
            break
        delay_ms = policy.get_delay_ms(attempt)
        log.warning(
            "Check %s failed on attempt %d, retrying in %.0fms",
            name,
            attempt + 1,
            delay_ms,
        )
        await _sleep_ms(sleep, delay_ms)
        result = await engine.run_check(name, check, options)
    return result
