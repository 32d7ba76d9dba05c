"""Numeric-segment version comparison and version text extraction."""

from __future__ import annotations

import re
from itertools import zip_longest
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

_DIGITS = re.compile(r"[0-9]+")
_VERSION = re.compile(r"v?(\d+\.\d+(?:\.\d+)?(?:-[a-zA-Z0-9.-]+)?)")


def parse_segments(version: str) -> list[str]:
    """Split a version string into its runs of decimal digits.

    Every non-digit character acts as a separator, so prefixes like ``v``,
    build metadata and mixed separators are tolerated. Leading zeros are
    dropped so each run is in canonical form; runs stay text because they
    can be arbitrarily long.

    Args:
        version: Provider-supplied version text.

    Returns:
        The canonical digits of each run, in order.
    """
    return [run.lstrip("0") or "0" for run in _DIGITS.findall(version)]


def _segment_key(run: str) -> tuple[int, str]:
    # Canonical digit strings order by length first, then digit by digit.
    return len(run), run


def is_newer(installed: str, candidate: str) -> bool:
    """Return True if ``candidate`` is strictly newer than ``installed``.

    Segments are compared position by position; a segment missing from the
    shorter version counts as zero. Strings without digits compare as all
    zeros, so two of them are always equal.

    Examples:
        >>> is_newer("1.9.0", "1.10.0")
        True
        >>> is_newer("2.0.0", "1.9.9")
        False
    """
    for a, b in zip_longest(parse_segments(installed), parse_segments(candidate), fillvalue="0"):
        if a != b:
            return _segment_key(b) > _segment_key(a)
    return False


def newest(items: Iterable[T], key: Callable[[T], str]) -> T | None:
    """Pick the item with the numerically greatest version.

    On exact numeric equality the earlier item wins, so callers control the
    tie-break through the order they pass items in.
    """
    best: T | None = None
    for item in items:
        if best is None or is_newer(key(best), key(item)):
            best = item
    return best


def extract_version(text: str) -> str | None:
    """Find the first version-looking token in free-form command output."""
    match = _VERSION.search(text)
    return match.group(1) if match else None


def extract_version_field(text: str) -> str | None:
    """Read a ``Version:`` field from key/value output (pip show, apt-cache)."""
    for line in text.splitlines():
        if line.startswith("Version:"):
            value = line.removeprefix("Version:").strip()
            return value or None
    return None


def strip_v(version: str) -> str:
    return version[1:] if version.startswith("v") else version
