"""Client for the POS spreadsheet API."""

import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from pydantic import BaseModel, ConfigDict, ValidationError

from pos_checks.config import ConfigurationError, HarnessConfig

log = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised when an API call does not produce a usable response."""


class ApiTimeoutError(ApiError):
    """Raised when a request exceeds its timeout."""


class ApiConnectionError(ApiError):
    """Raised when the API cannot be reached."""


class ApiHttpError(ApiError):
    """Raised for non-success HTTP statuses."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"HTTP {status}: {body}")
        self.status = status


class ApiResponse(BaseModel):
    """JSON object returned by the API.

    Every key besides ``status``, ``message`` and ``data`` is kept as an
    extra field.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    status: str | None = None
    message: str | None = None
    data: Any = None

    def has_field(self, name: str) -> bool:
        """Tell whether the response carried the key at all."""
        return name in self.model_fields_set or name in (self.model_extra or {})

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value of a declared or extra field."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name, default)

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @property
    def is_error(self) -> bool:
        return self.status == "error"


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True, kw_only=True)
class PosApiClient:
    """Calls actions on the POS API with a managed session."""

    api_url: str
    timeout_ms: float
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HarnessConfig
    ) -> AsyncGenerator["PosApiClient", None]:
        """Create client with managed session lifecycle.

        Raises:
            ConfigurationError: If no API URL is configured

        """
        if not config.api_url:
            raise ConfigurationError("API URL not configured")

        async with aiohttp.ClientSession(
            headers={"Accept": "application/json"},
        ) as session:
            yield cls(
                api_url=config.api_url,
                timeout_ms=config.timeout_ms,
                session=session,
            )

    async def call(
        self,
        action: str,
        params: Mapping[str, Any] | None = None,
        *,
        timeout_ms: float | None = None,
        url: str | None = None,
    ) -> ApiResponse:
        """Call an action and return the parsed response.

        Args:
            action: API action name
            params: Extra query parameters
            timeout_ms: Overrides the client timeout for this request
            url: Overrides the API URL for this request

        Raises:
            ApiTimeoutError: If the request timed out
            ApiConnectionError: If the server could not be reached
            ApiHttpError: If the server answered with a non-success status
            ApiError: If the body is not a JSON object

        """
        timeout_ms = timeout_ms if timeout_ms is not None else self.timeout_ms
        query = {"action": action}
        for key, value in (params or {}).items():
            query[key] = _query_value(value)

        log.debug("Calling action=%s params=%s", action, params)
        try:
            async with self.session.get(
                url or self.api_url,
                params=query,
                timeout=aiohttp.ClientTimeout(total=timeout_ms / 1000),
            ) as response:
                if response.status != 200:
                    text = await response.text()
                    raise ApiHttpError(response.status, text)
                payload = await response.json(content_type=None)
        except TimeoutError as exc:
            raise ApiTimeoutError(
                f"ERR_NETWORK_TIMEOUT: Request timeout after {timeout_ms:g}ms"
            ) from exc
        except aiohttp.ClientConnectionError as exc:
            raise ApiConnectionError(f"ERR_NETWORK: {exc}") from exc
        except aiohttp.ClientError as exc:
            raise ApiError(f"UNKNOWN_ERROR: {exc}") from exc
        except ValueError as exc:
            raise ApiError(f"Response is not valid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise ApiError("Response is not a valid object")

        try:
            return ApiResponse.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(f"Unexpected response shape: {exc}") from exc
