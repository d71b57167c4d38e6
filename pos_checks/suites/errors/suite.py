"""Error handling suite: failures, retries, storage and data conflicts."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import ClassVar

from pos_checks.client import ApiConnectionError, ApiTimeoutError, PosApiClient
from pos_checks.config import HarnessConfig
from pos_checks.models.check import CheckOutcome, NamedCheck
from pos_checks.retry import RetryPolicy, Sleep, retry_async
from pos_checks.storage import (
    MemoryStorage,
    StorageQuotaExceededError,
    read_json,
    remove_prefixed,
    write_json,
)
from pos_checks.suites.base import CheckSuite
from pos_checks.suites.errors.conflicts import (
    RESOLUTION_OPTIONS,
    has_conflict,
    resolve_conflict,
)
from pos_checks.suites.errors.messages import (
    ERROR_MESSAGES,
    FALLBACK_MESSAGE,
    user_friendly_message,
)
from pos_checks.suites.errors.validation import (
    PURCHASE_REQUIRED_FIELDS,
    validate_input,
)

log = logging.getLogger(__name__)

NETWORK_TIMEOUT_MS = 1
FLAKY_FAILURES = 2
QUOTA_BYTES = 1024
OLD_CACHE_PREFIX = "cache_old_"


def _recording_sleep(waited: list[float]) -> Sleep:
    """Sleep stand-in that records the requested delay and only yields."""

    async def sleep(seconds: float) -> None:
        waited.append(seconds)
        await asyncio.sleep(0)

    return sleep


@dataclass(frozen=True, kw_only=True)
class ErrorHandlingSuite(CheckSuite):
    """Checks that failures are detected, reported and recovered from."""

    key: ClassVar[str] = "errors"

    client: PosApiClient
    config: HarnessConfig

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HarnessConfig
    ) -> AsyncGenerator["ErrorHandlingSuite", None]:
        """Create suite with a managed API client."""
        async with PosApiClient.from_config(config) as client:
            yield cls(client=client, config=config)

    def checks(self) -> Sequence[NamedCheck]:
        return [
            NamedCheck(name="network-timeout", check=self.check_network_timeout),
            NamedCheck(
                name="network-unavailable", check=self.check_network_unavailable
            ),
            NamedCheck(name="validation-errors", check=self.check_validation_errors),
            NamedCheck(name="retry-backoff", check=self.check_retry_backoff),
            NamedCheck(name="retry-exhausted", check=self.check_retry_exhausted),
            NamedCheck(
                name="user-friendly-messages", check=self.check_user_messages
            ),
            NamedCheck(name="cache-corruption", check=self.check_cache_corruption),
            NamedCheck(name="storage-quota", check=self.check_storage_quota),
            NamedCheck(name="data-conflicts", check=self.check_data_conflicts),
        ]

    def _retry_policy(self, max_retries: int) -> RetryPolicy:
        return RetryPolicy(
            max_retries=max_retries, initial_delay_ms=self.config.retry_delay_ms
        )

    async def check_network_timeout(self) -> CheckOutcome:
        """A request that cannot finish in time surfaces as a timeout."""
        try:
            await self.client.call("getBootstrapData", timeout_ms=NETWORK_TIMEOUT_MS)
        except ApiTimeoutError as exc:
            message = user_friendly_message(str(exc))
            return CheckOutcome(
                passed=message == ERROR_MESSAGES["ERR_NETWORK_TIMEOUT"],
                metadata={"error": str(exc), "user_message": message},
            )
        return CheckOutcome(passed=False, metadata={"error": None})

    async def check_network_unavailable(self) -> CheckOutcome:
        """An unreachable server surfaces as a connection error."""
        try:
            await self.client.call("getBootstrapData", url=self.config.unreachable_url)
        except ApiConnectionError as exc:
            message = user_friendly_message(str(exc))
            return CheckOutcome(
                passed=message == ERROR_MESSAGES["ERR_NETWORK"],
                metadata={"error": str(exc), "user_message": message},
            )
        return CheckOutcome(passed=False, metadata={"error": None})

    def check_validation_errors(self) -> CheckOutcome:
        invalid = validate_input(
            {"ingredient_id": "", "qtyBuy": "abc", "totalPrice": -5},
            PURCHASE_REQUIRED_FIELDS,
        )
        valid = validate_input(
            {"ingredient_id": "TEST_ING_001", "qtyBuy": "10", "totalPrice": 100},
            PURCHASE_REQUIRED_FIELDS,
        )

        found = {(error.field, error.type) for error in invalid.errors}
        expected = {
            ("ingredient_id", "required"),
            ("qtyBuy", "type"),
            ("totalPrice", "range"),
        }
        return CheckOutcome(
            passed=found == expected and valid.valid,
            metadata={"highlighted_fields": list(invalid.highlighted_fields)},
        )

    async def check_retry_backoff(self) -> CheckOutcome:
        """A flaky operation succeeds after exponentially spaced retries."""
        policy = self._retry_policy(max(self.config.retries, FLAKY_FAILURES))
        attempts = 0
        waited: list[float] = []

        async def flaky() -> str:
            nonlocal attempts
            attempts += 1
            if attempts <= FLAKY_FAILURES:
                raise ApiConnectionError("ERR_NETWORK: simulated failure")
            return "ok"

        await retry_async(flaky, policy, sleep=_recording_sleep(waited))

        expected = [delay / 1000 for delay in policy.delays_ms()[:FLAKY_FAILURES]]
        return CheckOutcome(
            passed=attempts == FLAKY_FAILURES + 1 and waited == expected,
            metadata={"attempts": attempts, "delays_ms": [s * 1000 for s in waited]},
        )

    async def check_retry_exhausted(self) -> CheckOutcome:
        """An operation that never succeeds gives up after the last retry."""
        policy = self._retry_policy(self.config.retries)
        attempts = 0
        waited: list[float] = []

        async def failing() -> None:
            nonlocal attempts
            attempts += 1
            raise ApiConnectionError("ERR_NETWORK: simulated outage")

        try:
            await retry_async(failing, policy, sleep=_recording_sleep(waited))
        except ApiConnectionError:
            expected = [delay / 1000 for delay in policy.delays_ms()]
            return CheckOutcome(
                passed=attempts == policy.max_retries + 1 and waited == expected,
                metadata={
                    "attempts": attempts,
                    "delays_ms": [s * 1000 for s in waited],
                },
            )
        return CheckOutcome(passed=False, metadata={"attempts": attempts})

    def check_user_messages(self) -> CheckOutcome:
        cases = {
            f"{code}: technical detail": expected
            for code, expected in ERROR_MESSAGES.items()
        }
        cases["VALIDATION_FAILED: qtyBuy must be a number"] = "qtyBuy must be a number"
        cases["SHEET_LOCKED: Sheet is busy"] = "Sheet is busy"
        cases["boom"] = FALLBACK_MESSAGE

        mismatched = [
            technical
            for technical, expected in cases.items()
            if user_friendly_message(technical) != expected
        ]
        return CheckOutcome(passed=not mismatched, metadata={"mismatched": mismatched})

    def check_cache_corruption(self) -> CheckOutcome:
        storage = MemoryStorage()
        storage.set_item("cache_bootstrap", "{not json")
        value = read_json(storage, "cache_bootstrap")
        return CheckOutcome(
            passed=value is None and storage.get_item("cache_bootstrap") is None,
            metadata={"remaining_keys": list(storage.keys())},
        )

    def check_storage_quota(self) -> CheckOutcome:
        """Filling the quota is reported and cleared by dropping old cache."""
        storage = MemoryStorage(quota_bytes=QUOTA_BYTES)
        written = 0
        try:
            while True:
                write_json(storage, f"{OLD_CACHE_PREFIX}{written}", {"pad": "x" * 64})
                written += 1
        except StorageQuotaExceededError as exc:
            log.info("Quota reached after %d write(s): %s", written, exc)

        freed = remove_prefixed(storage, OLD_CACHE_PREFIX)
        write_json(storage, "pending_sale", {"menu_id": "TEST_MENU_001", "qty": 1})
        return CheckOutcome(
            passed=written > 0 and freed == written,
            metadata={"entries_written": written, "entries_freed": freed},
        )

    def check_data_conflicts(self) -> CheckOutcome:
        """Concurrent edits are detected and the most recent write is kept."""
        now = datetime.now(UTC)
        local = {"id": 1, "value": "local", "timestamp": now - timedelta(seconds=1)}
        remote = {"id": 1, "value": "remote", "timestamp": now}

        newer_remote = resolve_conflict(local, remote)
        newer_local = resolve_conflict(
            {**local, "timestamp": now + timedelta(seconds=1)}, remote
        )
        return CheckOutcome(
            passed=(
                has_conflict(local, remote)
                and newer_remote.data is remote
                and newer_local.strategy == "local-wins"
            ),
            metadata={
                "strategy": newer_remote.strategy,
                "resolution_options": list(RESOLUTION_OPTIONS),
            },
        )
