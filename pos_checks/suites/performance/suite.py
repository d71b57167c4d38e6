"""Performance suite: cache, API, sheet, load, offline and search timings."""

import json
import random
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import partial
from typing import ClassVar

from pos_checks.client import PosApiClient
from pos_checks.config import HarnessConfig
from pos_checks.models.check import CheckOptions, CheckOutcome, NamedCheck
from pos_checks.storage import KeyValueStorage, MemoryStorage, read_json, write_json
from pos_checks.suites.base import CheckSuite

CACHE_OPERATIONS = 10
CACHE_PREFIX = "perf_cache_"
SHEET_ROWS = 100
LOAD_RECORDS = 1000
SEARCH_ITEMS = 1000
SEARCH_TERM = "99"
TIMED_ACTIONS: Sequence[str] = ("getBootstrapData", "getLowStockHTML")


def _options(category: str) -> CheckOptions:
    return CheckOptions(category=category)


@dataclass(frozen=True, kw_only=True)
class PerformanceSuite(CheckSuite):
    """Times local storage work and API round trips against thresholds.

    Every check reports its own duration through the engine, so the checks
    only do the work and describe it in metadata.
    """

    key: ClassVar[str] = "performance"

    client: PosApiClient
    storage: KeyValueStorage = field(default_factory=MemoryStorage)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HarnessConfig
    ) -> AsyncGenerator["PerformanceSuite", None]:
        """Create suite with a managed API client."""
        async with PosApiClient.from_config(config) as client:
            yield cls(client=client)

    def checks(self) -> Sequence[NamedCheck]:
        checks = [
            NamedCheck(
                name="cache-writes",
                check=self.check_cache_writes,
                options=_options("cache"),
            ),
            NamedCheck(
                name="cache-reads",
                check=self.check_cache_reads,
                options=_options("cache"),
            ),
        ]
        checks.extend(
            NamedCheck(
                name=f"api:{action}",
                check=partial(self.check_api_call, action),
                options=_options("api"),
            )
            for action in TIMED_ACTIONS
        )
        checks.extend(
            [
                NamedCheck(
                    name="sheet-read",
                    check=self.check_sheet_read,
                    options=_options("sheet"),
                ),
                NamedCheck(
                    name="load-1k-records",
                    check=self.check_load_records,
                    options=_options("load"),
                ),
                NamedCheck(
                    name="offline-read",
                    check=self.check_offline_read,
                    options=_options("offline"),
                ),
                NamedCheck(
                    name="search-1k-items",
                    check=self.check_search,
                    options=_options("search"),
                ),
            ]
        )
        return checks

    def check_cache_writes(self) -> CheckOutcome:
        for i in range(CACHE_OPERATIONS):
            write_json(self.storage, f"{CACHE_PREFIX}{i}", {"i": i})
        return CheckOutcome(passed=True, metadata={"operations": CACHE_OPERATIONS})

    def check_cache_reads(self) -> CheckOutcome:
        """Read back what the write check stored, then drop it."""
        values = [
            read_json(self.storage, f"{CACHE_PREFIX}{i}")
            for i in range(CACHE_OPERATIONS)
        ]
        for i in range(CACHE_OPERATIONS):
            self.storage.remove_item(f"{CACHE_PREFIX}{i}")
        return CheckOutcome(
            passed=values == [{"i": i} for i in range(CACHE_OPERATIONS)],
            metadata={"operations": CACHE_OPERATIONS},
        )

    async def check_api_call(self, action: str) -> CheckOutcome:
        response = await self.client.call(action)
        return CheckOutcome(
            passed=True, metadata={"action": action, "status": response.status}
        )

    def check_sheet_read(self) -> CheckOutcome:
        document = json.dumps(
            {"rows": [{"row": i, "value": f"cell {i}"} for i in range(SHEET_ROWS)]}
        )
        rows = json.loads(document)["rows"]
        return CheckOutcome(
            passed=len(rows) == SHEET_ROWS, metadata={"rows": len(rows)}
        )

    def check_load_records(self) -> CheckOutcome:
        records = [{"i": i, "v": random.random()} for i in range(LOAD_RECORDS)]
        write_json(self.storage, "perf_large", records)
        loaded = read_json(self.storage, "perf_large")
        self.storage.remove_item("perf_large")
        total = sum(record["v"] for record in loaded)
        return CheckOutcome(
            passed=len(loaded) == LOAD_RECORDS, metadata={"sum": total}
        )

    def check_offline_read(self) -> bool:
        write_json(self.storage, "perf_offline", {"t": "cached"})
        cached = read_json(self.storage, "perf_offline")
        self.storage.remove_item("perf_offline")
        return cached == {"t": "cached"}

    def check_search(self) -> CheckOutcome:
        items = [f"Item {i}" for i in range(SEARCH_ITEMS)]
        found = [item for item in items if SEARCH_TERM in item]
        return CheckOutcome(passed=bool(found), metadata={"found": len(found)})
