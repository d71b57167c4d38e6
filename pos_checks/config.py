"""Configuration for the engine and the check suites."""

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import Field, ValidationError, field_validator

from pos_checks.models.base import Model

DEFAULT_THRESHOLDS: Mapping[str, float] = MappingProxyType(
    {
        "cache": 10,
        "api": 2000,
        "sheet": 100,
        "offline": 500,
        "search": 300,
        "load": 1000,
        # The spreadsheet backend typically answers in two to five seconds
        "api_response": 6000,
    }
)


class ConfigurationError(ValueError):
    """Raised for invalid configuration, before any check executes."""


def _check_thresholds(thresholds: Mapping[str, float]) -> Mapping[str, float]:
    for category, value in thresholds.items():
        if not category:
            raise ValueError("threshold category must not be empty")
        if value <= 0:
            raise ValueError(f"threshold for '{category}' must be positive")
    return MappingProxyType(dict(thresholds))


class EngineConfig(Model):
    """Immutable engine configuration."""

    timeout_ms: float | None = Field(
        default=None, gt=0, description="Default timeout for checks"
    )
    thresholds: Mapping[str, float] = Field(
        default_factory=dict,
        validate_default=True,
        description="Threshold in ms per category",
    )

    @field_validator("thresholds")
    @classmethod
    def validate_thresholds(
        cls, value: Mapping[str, float]
    ) -> Mapping[str, float]:
        """Reject empty categories and non-positive thresholds."""
        return _check_thresholds(value)

    def threshold_for(self, category: str) -> float:
        """Return the threshold configured for a category.

        Raises:
            ConfigurationError: If the category has no threshold

        """
        try:
            return self.thresholds[category]
        except KeyError:
            raise ConfigurationError(
                f"Unknown threshold category '{category}'. "
                f"Known categories: {sorted(self.thresholds)}"
            ) from None


class HarnessConfig(Model):
    """Configuration shared by the check suites and the CLI."""

    api_url: str | None = Field(default=None, description="POS API endpoint URL")
    timeout_ms: float = Field(default=10000, gt=0, description="Request timeout")
    retries: int = Field(default=3, ge=0, description="Retries for retry checks")
    retry_delay_ms: float = Field(
        default=1000, ge=0, description="Initial exponential backoff delay"
    )
    check_timeout_ms: float | None = Field(
        default=None, gt=0, description="Default engine timeout for every check"
    )
    thresholds: Mapping[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_THRESHOLDS),
        validate_default=True,
        description="Threshold overrides in ms per category",
    )
    unreachable_url: str = Field(
        default="http://127.0.0.1:9/",
        description="Endpoint expected to refuse connections",
    )

    @field_validator("thresholds")
    @classmethod
    def validate_thresholds(
        cls, value: Mapping[str, float]
    ) -> Mapping[str, float]:
        """Reject empty categories and non-positive thresholds."""
        return _check_thresholds(value)

    @field_validator("thresholds", mode="before")
    @classmethod
    def merge_default_thresholds(cls, value: object) -> object:
        """Overlay configured thresholds on the defaults."""
        if not isinstance(value, Mapping):
            return value
        return {**DEFAULT_THRESHOLDS, **value}

    def engine_config(self) -> EngineConfig:
        """Derive the engine configuration."""
        return EngineConfig(
            timeout_ms=self.check_timeout_ms, thresholds=self.thresholds
        )


def load_harness_config(
    config_json: str, api_url: str | None = None
) -> HarnessConfig:
    """Parse harness configuration from JSON, optionally overriding the URL.

    Raises:
        ConfigurationError: If the JSON is malformed or fails validation

    """
    try:
        config = HarnessConfig.model_validate_json(config_json)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    if api_url:
        config = config.model_copy(update={"api_url": api_url})
    return config
