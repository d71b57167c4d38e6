"""Models describing checks handed to the engine."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import Field

from pos_checks.models.base import Model


@dataclass(frozen=True, kw_only=True)
class CheckOutcome:
    """Explicit outcome a check may return instead of a bare boolean."""

    passed: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)


type CheckValue = CheckOutcome | bool | None | object

type CheckFn = (
    Callable[[], CheckValue | Awaitable[CheckValue]]
    | Callable[[asyncio.Event], CheckValue | Awaitable[CheckValue]]
)


class CheckOptions(Model):
    """Per-check execution options."""

    threshold_ms: float | None = Field(
        default=None, gt=0, description="Duration must be strictly below this"
    )
    timeout_ms: float | None = Field(
        default=None, gt=0, description="Abandon the check after this long"
    )
    category: str | None = Field(
        default=None,
        min_length=1,
        description="Threshold category looked up in the engine config",
    )


@dataclass(frozen=True, kw_only=True)
class NamedCheck:
    """A check together with its name and options, as run in a batch."""

    name: str
    check: CheckFn
    options: CheckOptions | Mapping[str, Any] | None = None
