"""Client-side validation of transaction input."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

NUMERIC_FIELDS: Sequence[str] = ("qtyBuy", "totalPrice")
PURCHASE_REQUIRED_FIELDS: Sequence[str] = ("ingredient_id", "qtyBuy", "totalPrice")


@dataclass(frozen=True, kw_only=True)
class FieldError:
    """A single validation problem."""

    field: str
    message: str
    type: Literal["required", "type", "range"]


@dataclass(frozen=True, kw_only=True)
class ValidationReport:
    """Validation outcome with the fields to highlight in the form."""

    errors: Sequence[FieldError]
    highlighted_fields: Sequence[str]

    @property
    def valid(self) -> bool:
        return not self.errors


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_input(
    data: Mapping[str, Any], required_fields: Sequence[str]
) -> ValidationReport:
    """Check required fields, numeric types and non-negative amounts."""
    errors: list[FieldError] = []

    for name in required_fields:
        if data.get(name) is None or data.get(name) == "":
            errors.append(
                FieldError(field=name, message=f"{name} is required", type="required")
            )

    for name in NUMERIC_FIELDS:
        value = data.get(name)
        if value is None or value == "":
            continue
        number = _as_number(value)
        if number is None:
            errors.append(
                FieldError(field=name, message=f"{name} must be a number", type="type")
            )
        elif number < 0:
            errors.append(
                FieldError(
                    field=name, message=f"{name} cannot be negative", type="range"
                )
            )

    highlighted = list(dict.fromkeys(error.field for error in errors))
    return ValidationReport(errors=errors, highlighted_fields=highlighted)
