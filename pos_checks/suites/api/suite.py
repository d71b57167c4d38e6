"""API suite: response shape, parameter validation and error handling."""

import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial
from typing import Any, ClassVar

from pos_checks.client import ApiHttpError, ApiTimeoutError, PosApiClient
from pos_checks.config import HarnessConfig
from pos_checks.models.check import CheckOptions, CheckOutcome, NamedCheck
from pos_checks.suites.api.endpoints import (
    ENDPOINTS,
    Endpoint,
    get_endpoint,
    prepare_params,
)
from pos_checks.suites.base import CheckSuite

log = logging.getLogger(__name__)

INVALID_ACTION = "invalidAction"

# (action, field, params) where one numeric field carries a non-number
INVALID_NUMERIC_INPUTS: Sequence[tuple[str, str, Mapping[str, Any]]] = (
    (
        "addPurchase",
        "qtyBuy",
        {"ingredient_id": "TEST", "qtyBuy": "invalid", "totalPrice": 100},
    ),
    (
        "addPurchase",
        "totalPrice",
        {"ingredient_id": "TEST", "qtyBuy": 10, "totalPrice": "invalid"},
    ),
    (
        "addSale",
        "qty",
        {"platform": "Grab", "menu_id": "TEST", "qty": "invalid", "price": 50},
    ),
    (
        "addSale",
        "price",
        {"platform": "Grab", "menu_id": "TEST", "qty": 1, "price": "invalid"},
    ),
)

RESPONSE_TIME_OPTIONS = CheckOptions(category="api_response")


@dataclass(frozen=True, kw_only=True)
class ApiSuite(CheckSuite):
    """Checks every endpoint of the POS API."""

    key: ClassVar[str] = "api"

    client: PosApiClient
    endpoints: Sequence[Endpoint] = ENDPOINTS

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HarnessConfig
    ) -> AsyncGenerator["ApiSuite", None]:
        """Create suite with a managed API client."""
        async with PosApiClient.from_config(config) as client:
            yield cls(client=client)

    def checks(self) -> Sequence[NamedCheck]:
        checks = [
            NamedCheck(
                name=f"endpoint:{endpoint.action}",
                check=partial(self.check_endpoint, endpoint),
                options=RESPONSE_TIME_OPTIONS,
            )
            for endpoint in self.endpoints
        ]

        checks.extend(
            NamedCheck(
                name=f"missing-param:{endpoint.action}:{param}",
                check=partial(self.check_missing_param, endpoint, param),
            )
            for endpoint in self.endpoints
            for param in endpoint.required_params
        )

        checks.append(
            NamedCheck(name="invalid-action", check=self.check_invalid_action)
        )
        checks.extend(
            NamedCheck(
                name=f"missing-params:{action}",
                check=partial(self.check_missing_params, action),
            )
            for action in ("addPurchase", "addSale")
        )
        checks.append(NamedCheck(name="error-format", check=self.check_error_format))

        checks.extend(
            NamedCheck(
                name=f"invalid-input:{action}:{field_name}",
                check=partial(self.check_input_handled, action, params),
            )
            for action, field_name, params in INVALID_NUMERIC_INPUTS
        )
        checks.append(
            NamedCheck(
                name="empty-ingredient-id",
                check=partial(
                    self.check_input_rejected,
                    "addPurchase",
                    {"ingredient_id": "", "qtyBuy": 10, "totalPrice": 100},
                ),
            )
        )
        checks.append(
            NamedCheck(
                name="negative-quantity",
                check=partial(
                    self.check_input_rejected,
                    "addPurchase",
                    {"ingredient_id": "TEST", "qtyBuy": -10, "totalPrice": 100},
                ),
            )
        )

        checks.append(
            NamedCheck(name="request-timeout", check=self.check_request_timeout)
        )
        return checks

    async def check_endpoint(self, endpoint: Endpoint) -> CheckOutcome:
        """Call the endpoint and validate the shape of its response."""
        response = await self.client.call(endpoint.action, prepare_params(endpoint))

        failures: list[str] = []
        missing = [
            name for name in endpoint.expected_fields if not response.has_field(name)
        ]
        if missing:
            failures.append(f"Missing expected fields: {', '.join(missing)}")

        if response.is_error:
            failures.append(
                f"Response status is error: {response.message or 'Unknown error'}"
            )
        elif not response.is_success:
            failures.append(f"Invalid response status: {response.status}")

        if (problem := endpoint.validate(response)) is not None:
            failures.append(problem)

        if failures:
            log.warning("Endpoint %s: %s", endpoint.action, "; ".join(failures))

        return CheckOutcome(
            passed=not failures,
            metadata={"action": endpoint.action, "failures": failures},
        )

    async def check_missing_param(self, endpoint: Endpoint, param: str) -> CheckOutcome:
        """The API must answer with an error when a required param is omitted."""
        params = prepare_params(endpoint)
        del params[param]
        response = await self.client.call(endpoint.action, params)
        return CheckOutcome(
            passed=response.is_error,
            metadata={"missing_param": param, "status": response.status},
        )

    async def check_invalid_action(self) -> CheckOutcome:
        """Unknown actions are rejected with the list of available actions."""
        response = await self.client.call(INVALID_ACTION)
        available = response.get("availableActions")
        return CheckOutcome(
            passed=response.is_error and bool(available),
            metadata={"status": response.status, "available_actions": available},
        )

    async def check_missing_params(self, action: str) -> CheckOutcome:
        """Calling a write action without any params reports what is missing."""
        response = await self.client.call(action, {})
        return CheckOutcome(
            passed=response.is_error and "Missing" in (response.message or ""),
            metadata={"status": response.status, "message": response.message},
        )

    async def check_error_format(self) -> bool:
        """Error responses carry a timestamp, a status and a message."""
        response = await self.client.call(INVALID_ACTION)
        return (
            response.is_error
            and response.has_field("timestamp")
            and response.has_field("message")
        )

    async def check_input_handled(
        self, action: str, params: Mapping[str, Any]
    ) -> CheckOutcome:
        """Invalid input is either converted or rejected, never a broken reply."""
        try:
            response = await self.client.call(action, params)
        except ApiHttpError as exc:
            return CheckOutcome(passed=True, metadata={"rejected_with": str(exc)})
        return CheckOutcome(
            passed=response.is_error or response.is_success,
            metadata={"status": response.status},
        )

    async def check_input_rejected(
        self, action: str, params: Mapping[str, Any]
    ) -> CheckOutcome:
        """Invalid input is rejected by the API."""
        try:
            response = await self.client.call(action, params)
        except ApiHttpError as exc:
            return CheckOutcome(passed=True, metadata={"rejected_with": str(exc)})
        return CheckOutcome(
            passed=response.is_error, metadata={"status": response.status}
        )

    async def check_request_timeout(self) -> CheckOutcome:
        """A request with a 1ms budget is reported as a timeout."""
        action = get_endpoint("getBootstrapData").action
        try:
            await self.client.call(action, timeout_ms=1)
        except ApiTimeoutError as exc:
            return CheckOutcome(
                passed="timeout" in str(exc).lower(), metadata={"message": str(exc)}
            )
        return CheckOutcome(
            passed=False, metadata={"message": "Request completed within 1ms"}
        )
