"""Endpoints of the POS API and the values used to exercise them."""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pos_checks.client import ApiResponse


@dataclass(frozen=True, kw_only=True)
class Endpoint:
    """An API action with its parameters and expected response fields."""

    action: str
    description: str
    required_params: Sequence[str] = ()
    optional_params: Sequence[str] = ()
    expected_fields: Sequence[str] = ("status", "data")
    validate: Callable[[ApiResponse], str | None] = field(
        default=lambda response: None, repr=False
    )


def _validate_bootstrap(response: ApiResponse) -> str | None:
    data = response.data
    if not isinstance(data, Mapping) or not data.get("ingredients"):
        return "Missing ingredients map in bootstrap data"
    if not data.get("timestamp"):
        return "Missing timestamp in bootstrap data"
    if not data.get("version"):
        return "Missing version in bootstrap data"
    return None


def _validate_search(response: ApiResponse) -> str | None:
    if not isinstance(response.data, list):
        return "Search results data is not an array"
    count = response.get("count")
    if isinstance(count, bool) or not isinstance(count, int | float):
        return "Search results count is not a number"
    return None


def _validate_ingredient_map(response: ApiResponse) -> str | None:
    if not isinstance(response.data, Mapping):
        return "Ingredient map data is not an object"
    return None


def _validate_purchase(response: ApiResponse) -> str | None:
    if not response.get("lot_id"):
        return "Missing lot_id in purchase response"
    return None


def _validate_sale(response: ApiResponse) -> str | None:
    if not response.message:
        return "Missing message in sale response"
    return None


def _validate_report(response: ApiResponse) -> str | None:
    if not response.data:
        return "Missing data in report response"
    return None


def _validate_low_stock(response: ApiResponse) -> str | None:
    if not response.get("html"):
        return "Missing html in low stock response"
    return None


ENDPOINTS: Sequence[Endpoint] = (
    Endpoint(
        action="getBootstrapData",
        description="Get bootstrap data for application initialization",
        expected_fields=("status", "data", "timestamp"),
        validate=_validate_bootstrap,
    ),
    Endpoint(
        action="searchIngredients",
        description="Search for ingredients by query",
        # Without a query every ingredient is returned
        optional_params=("query", "limit"),
        expected_fields=("status", "data", "count"),
        validate=_validate_search,
    ),
    Endpoint(
        action="getIngredientMap",
        description="Get complete ingredient map",
        validate=_validate_ingredient_map,
    ),
    Endpoint(
        action="addPurchase",
        description="Add a new purchase transaction",
        required_params=("ingredient_id", "qtyBuy", "totalPrice"),
        optional_params=(
            "date",
            "unit",
            "unitPrice",
            "supplierNote",
            "actualYield",
        ),
        expected_fields=("status", "message", "lot_id"),
        validate=_validate_purchase,
    ),
    Endpoint(
        action="addSale",
        description="Add a new sale transaction",
        required_params=("platform", "menu_id", "qty", "price"),
        optional_params=("date",),
        expected_fields=("status", "message"),
        validate=_validate_sale,
    ),
    Endpoint(
        action="getReport",
        description="Get report data based on type",
        required_params=("type",),
        optional_params=("startDate", "endDate"),
        validate=_validate_report,
    ),
    Endpoint(
        action="getLowStockHTML",
        description="Get HTML content for low stock alerts",
        expected_fields=("status", "html"),
        validate=_validate_low_stock,
    ),
)

TEST_VALUES: Mapping[str, Any] = {
    "ingredient_id": "TEST_ING_001",
    "menu_id": "TEST_MENU_001",
    "qtyBuy": 10,
    "totalPrice": 100,
    "qty": 1,
    "price": 50,
    "platform": "Grab",
    "query": "test",
    "limit": 10,
    "type": "daily",
}


def get_test_value(param: str) -> Any:
    """Return the value used for a parameter in test calls."""
    if param == "date":
        return date.today().isoformat()
    return TEST_VALUES.get(param, "test_value")


def prepare_params(
    endpoint: Endpoint, custom: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Fill in every required parameter the caller did not provide."""
    params = dict(custom or {})
    for param in endpoint.required_params:
        if not params.get(param):
            params[param] = get_test_value(param)
    return params


def get_endpoint(action: str) -> Endpoint:
    """Look up an endpoint by action name."""
    for endpoint in ENDPOINTS:
        if endpoint.action == action:
            return endpoint
    raise KeyError(action)
