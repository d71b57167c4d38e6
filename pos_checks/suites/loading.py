"""Loading of check suites from entry points."""

from collections.abc import Sequence
from importlib.metadata import entry_points

from pos_checks.suites.manifest import SuiteManifest

ENTRY_POINT_GROUP = "pos_checks.suites"


class SuiteNotFoundError(Exception):
    """Raised when a suite is not found."""


def available_suites() -> Sequence[str]:
    """Return the keys of every registered suite, sorted."""
    return sorted(entry.name for entry in entry_points(group=ENTRY_POINT_GROUP))


def load_suite_manifest(key: str) -> SuiteManifest:
    """Load a suite manifest by key.

    Args:
        key: The suite key as registered in pyproject.toml
             (e.g., "api", "performance")

    Returns:
        The suite manifest instance

    Raises:
        SuiteNotFoundError: If no suite with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest: SuiteManifest = entry.load()
            return manifest

    available = sorted(e.name for e in entries)
    raise SuiteNotFoundError(f"Suite '{key}' not found. Available suites: {available}")
