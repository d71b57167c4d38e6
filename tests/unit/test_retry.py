"""Tests for retry policy and helpers."""

from unittest.mock import AsyncMock

import pytest

from pos_checks.engine import TimedAssertionEngine
from pos_checks.retry import RetryPolicy, retry_async, run_with_retry


class RecordingSleep:
    """Sleep replacement remembering every requested delay."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_exponential_delays(self) -> None:
        """Delays double for every retry."""
        policy = RetryPolicy(max_retries=3, initial_delay_ms=1000)

        assert policy.delays_ms() == [1000, 2000, 4000]

    def test_delay_capped(self) -> None:
        """Delays never exceed the maximum."""
        policy = RetryPolicy(initial_delay_ms=1000, max_delay_ms=3000)

        assert policy.get_delay_ms(5) == 3000

    def test_no_retries(self) -> None:
        """A policy without retries never waits."""
        assert RetryPolicy(max_retries=0).delays_ms() == []


class TestRetryAsync:
    """Tests for retry_async."""

    async def test_returns_first_success(self) -> None:
        """Succeeds without sleeping when the first attempt works."""
        operation = AsyncMock(return_value="ok")
        sleep = RecordingSleep()

        result = await retry_async(operation, RetryPolicy(), sleep=sleep)

        assert result == "ok"
        assert operation.await_count == 1
        assert sleep.calls == []

    async def test_retries_with_backoff(self) -> None:
        """Sleeps with exponential backoff between failed attempts."""
        operation = AsyncMock(side_effect=[OSError("a"), OSError("b"), "ok"])
        sleep = RecordingSleep()

        result = await retry_async(
            operation, RetryPolicy(max_retries=3, initial_delay_ms=100), sleep=sleep
        )

        assert result == "ok"
        assert sleep.calls == [0.1, 0.2]

    async def test_raises_last_error_when_exhausted(self) -> None:
        """Re-raises the last error after max_retries + 1 attempts."""
        operation = AsyncMock(
            side_effect=[OSError("first"), OSError("second"), OSError("last")]
        )

        with pytest.raises(OSError, match="last"):
            await retry_async(
                operation, RetryPolicy(max_retries=2), sleep=RecordingSleep()
            )

        assert operation.await_count == 3


class TestRunWithRetry:
    """Tests for run_with_retry."""

    async def test_every_attempt_recorded(self) -> None:
        """Each attempt is a separate engine result."""
        engine = TimedAssertionEngine()
        outcomes = iter([False, False, True])
        sleep = RecordingSleep()

        result = await run_with_retry(
            engine,
            "flaky",
            lambda: next(outcomes),
            policy=RetryPolicy(max_retries=3, initial_delay_ms=10),
            sleep=sleep,
        )

        assert result.passed is True
        assert [r.passed for r in engine.results] == [False, False, True]
        assert sleep.calls == [0.01, 0.02]

    async def test_stops_after_max_retries(self) -> None:
        """Returns the last failed result once retries are used up."""
        engine = TimedAssertionEngine()

        result = await run_with_retry(
            engine,
            "broken",
            lambda: False,
            policy=RetryPolicy(max_retries=2),
            sleep=RecordingSleep(),
        )

        assert result.passed is False
        assert engine.get_overall_summary().total == 3
