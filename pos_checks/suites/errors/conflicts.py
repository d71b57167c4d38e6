"""Detection and resolution of conflicting local and remote records."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

type ConflictStrategy = Literal["local-wins", "remote-wins"]

RESOLUTION_OPTIONS: Sequence[str] = ("Keep local", "Use remote", "Merge changes")


@dataclass(frozen=True, kw_only=True)
class ConflictResolution:
    """The record that won and the strategy that picked it."""

    strategy: ConflictStrategy
    data: Mapping[str, Any]


def _timestamp_ms(record: Mapping[str, Any]) -> float:
    """Read a record's timestamp as epoch milliseconds.

    Accepts epoch milliseconds, ``datetime`` objects and ISO-8601 strings.
    Naive datetimes are taken as UTC.

    Raises:
        ValueError: If the record has no usable timestamp

    """
    value = record.get("timestamp")
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise ValueError(f"Invalid record timestamp: {value!r}") from None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.timestamp() * 1000
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Record has no usable timestamp: {value!r}")


def has_conflict(local: Mapping[str, Any], remote: Mapping[str, Any]) -> bool:
    """Tell whether two versions of the same record disagree."""
    return local.get("id") == remote.get("id") and dict(local) != dict(remote)


def resolve_conflict(
    local: Mapping[str, Any], remote: Mapping[str, Any]
) -> ConflictResolution:
    """Resolve a conflict by keeping the most recent write.

    The remote record wins ties.

    Args:
        local: Record as stored on this device
        remote: Record as stored on the server

    Returns:
        The winning record and the strategy applied

    Raises:
        ValueError: If either record lacks a usable timestamp

    """
    if _timestamp_ms(local) > _timestamp_ms(remote):
        return ConflictResolution(strategy="local-wins", data=local)
    return ConflictResolution(strategy="remote-wins", data=remote)
