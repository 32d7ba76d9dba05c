"""Derive lookup status and the aggregate exit code."""

from __future__ import annotations

from typing import Iterable

from latest.analysis.versions import is_newer
from latest.core.errors import EXIT_MISSING, EXIT_OUTDATED, EXIT_SUCCESS
from latest.core.models import LookupResult, Status

EXIT_CODES = {
    Status.UP_TO_DATE: EXIT_SUCCESS,
    Status.NOT_INSTALLED: EXIT_MISSING,
    Status.NOT_FOUND: EXIT_MISSING,
    Status.OUTDATED: EXIT_OUTDATED,
}


def derive_status(installed: str, latest: str | None) -> Status:
    """Classify an installed version against the newest registry version."""
    if latest is not None and is_newer(installed, latest):
        return Status.OUTDATED
    return Status.UP_TO_DATE


def exit_code(results: Iterable[LookupResult]) -> int:
    """Reduce per-package results to one process exit code.

    The highest code wins: outdated (2) over not installed or not found (1)
    over up to date (0). No results means success.
    """
    return max((EXIT_CODES[r.status] for r in results), default=EXIT_SUCCESS)
