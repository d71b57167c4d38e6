"""Integration tests for the API suite."""

from aioresponses import aioresponses as aioresponses_cls

from pos_checks.client import PosApiClient
from pos_checks.engine import TimedAssertionEngine
from pos_checks.suites.api import ApiSuite
from pos_checks.testing import payloads
from pos_checks.testing.fake_api import FakePosApi, action_pattern


async def test_all_checks_pass_against_healthy_api(
    client: PosApiClient, fake_api: FakePosApi, engine: TimedAssertionEngine
) -> None:
    """Every check passes when the API behaves as documented."""
    batch = await ApiSuite(client=client).run(engine)

    failed = [r for r in batch.results if not r.passed]
    assert failed == []
    assert batch.summary.total == 26


async def test_check_names(client: PosApiClient) -> None:
    """Checks are named after the endpoint and parameter they exercise."""
    names = [check.name for check in ApiSuite(client=client).checks()]

    assert names[:7] == [
        "endpoint:getBootstrapData",
        "endpoint:searchIngredients",
        "endpoint:getIngredientMap",
        "endpoint:addPurchase",
        "endpoint:addSale",
        "endpoint:getReport",
        "endpoint:getLowStockHTML",
    ]
    assert "missing-param:addSale:platform" in names
    assert "invalid-input:addPurchase:qtyBuy" in names
    assert names[-1] == "request-timeout"


async def test_malformed_response_reports_failures(
    client: PosApiClient, fake_api: FakePosApi, engine: TimedAssertionEngine
) -> None:
    """A response missing expected fields fails with the problems in metadata."""
    fake_api.overrides["getBootstrapData"] = {"status": "success", "data": {}}
    suite = ApiSuite(client=client)
    endpoint_check = suite.checks()[0]

    result = await engine.run_check(
        endpoint_check.name, endpoint_check.check, endpoint_check.options
    )

    assert result.passed is False
    assert result.error is None
    assert result.metadata["failures"] == [
        "Missing expected fields: timestamp",
        "Missing ingredients map in bootstrap data",
    ]


async def test_error_status_reported(
    client: PosApiClient, fake_api: FakePosApi, engine: TimedAssertionEngine
) -> None:
    """An error status on a valid call is listed as a failure."""
    fake_api.overrides["getIngredientMap"] = payloads.error_response("Sheet missing")
    suite = ApiSuite(client=client)

    result = await engine.run_check(
        "map", lambda: suite.check_endpoint(suite.endpoints[2])
    )

    assert result.passed is False
    assert "Response status is error: Sheet missing" in result.metadata["failures"]


async def test_http_rejection_counts_as_rejected(
    client: PosApiClient, aioresponses: aioresponses_cls, engine: TimedAssertionEngine
) -> None:
    """Invalid input rejected with an HTTP error passes."""
    aioresponses.get(action_pattern("addPurchase"), status=400, body="Bad Request")
    suite = ApiSuite(client=client)

    result = await engine.run_check(
        "negative",
        lambda: suite.check_input_rejected(
            "addPurchase", {"ingredient_id": "X", "qtyBuy": -1, "totalPrice": 1}
        ),
    )

    assert result.passed is True
    assert result.metadata == {"rejected_with": "HTTP 400: Bad Request"}


async def test_accepted_invalid_input_fails(
    client: PosApiClient, fake_api: FakePosApi, engine: TimedAssertionEngine
) -> None:
    """Invalid input the API accepts fails the rejection check."""
    fake_api.overrides["addPurchase"] = payloads.purchase()
    suite = ApiSuite(client=client)

    result = await engine.run_check(
        "empty-ingredient-id",
        lambda: suite.check_input_rejected(
            "addPurchase", {"ingredient_id": "", "qtyBuy": 1, "totalPrice": 1}
        ),
    )

    assert result.passed is False


async def test_unreachable_api_faults_every_check(
    client: PosApiClient, engine: TimedAssertionEngine
) -> None:
    """Without a server every API check fails with the connection error."""
    batch = await ApiSuite(client=client).run(engine)

    assert batch.summary.passed == 0
    assert all(r.error and r.error.startswith("ERR_NETWORK") for r in batch.results)
