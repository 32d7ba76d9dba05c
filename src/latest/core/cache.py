"""A file-based cache of provider responses with expiration."""

from __future__ import annotations

import asyncio
import json
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any

from latest.core.config import DEFAULT_CACHE_TTL
from latest.core.errors import CacheCorruptError, ProviderError, TransientError
from latest.core.logging import get_logger
from latest.providers.base import Provider

log = get_logger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def sanitise(name: str) -> str:
    """Make a package name safe for use as a file name."""
    return _UNSAFE.sub("_", name)


class ResponseCache:
    """Durable cache of provider answers keyed by (provider, package).

    Each entry is one JSON record under ``<root>/<provider>/``. Absent
    answers are stored too, so a package a registry does not know is not
    asked for again within the TTL. Transient failures (timeouts, network
    errors) are never stored. Local providers report what is installed
    right now and always bypass the cache.
    """

    def __init__(self, root: Path, ttl: int = DEFAULT_CACHE_TTL, enabled: bool = True) -> None:
        self.root = root
        self.ttl = ttl
        self.enabled = enabled
        self._in_flight: dict[tuple[str, str], asyncio.Lock] = {}
        log.debug("cache_initialized", path=str(root), ttl=ttl, enabled=enabled)

    def _file(self, provider: str, package: str) -> Path:
        """Get the file path for a cache key.

        Args:
            provider: Provider identity.
            package: Package name.

        Returns:
            The Path to the cache record.
        """
        return self.root / sanitise(provider) / f"{sanitise(package)}.json"

    async def get_or_fetch(
        self, provider: Provider, package: str, now: float | None = None
    ) -> str | None:
        """Get a cached version or ask the provider for it.

        Args:
            provider: The provider to consult on a miss.
            package: Package name.
            now: Current time in seconds since the epoch; defaults to time.time().

        Returns:
            The version, or None if the provider has none or failed.
        """
        if not self.enabled or provider.is_local:
            return await provider.get_version(package)

        now = time.time() if now is None else now
        key = f"{provider.name}:{package}"
        f = self._file(provider.name, package)

        # Concurrent callers for one key wait for the first fetch, then hit.
        async with self._in_flight.setdefault((provider.name, package), asyncio.Lock()):
            entry = self._fresh_entry(f, provider.name, package, key, now)
            if entry is not None:
                return entry["version"]

            log.info("cache_miss", key=key)

            try:
                version = await provider.query(package)
            except TransientError as e:
                log.warning("provider_transient_failure", key=key, error=str(e))
                return None
            except ProviderError as e:
                log.info("provider_failed", key=key, error=str(e))
                version = None

            self._write(f, {
                "provider": provider.name,
                "package": package,
                "version": version,
                "_ts": now,
            })
            return version

    def _fresh_entry(
        self, f: Path, provider: str, package: str, key: str, now: float
    ) -> dict[str, Any] | None:
        """Return the stored record if it is younger than the TTL."""
        try:
            entry = self._read(f, provider, package)
        except CacheCorruptError as e:
            log.warning("cache_corrupted", key=key, error=str(e))
            return None

        if entry is None:
            return None

        age_seconds = now - entry["_ts"]
        if 0 <= age_seconds < self.ttl:
            log.info("cache_hit", key=key, age_seconds=int(age_seconds))
            return entry
        log.debug("cache_expired", key=key, age_seconds=int(age_seconds))
        return None

    def _read(self, f: Path, provider: str, package: str) -> dict[str, Any] | None:
        """Read a record, returning None when there is none for this key.

        Raises:
            CacheCorruptError: The record exists but cannot be used.
        """
        try:
            data = json.loads(f.read_text())
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptError(path=str(f), operation="read", context={"error": str(e)}) from e

        if (
            not isinstance(data, dict)
            or not isinstance(data.get("_ts"), (int, float))
            or not isinstance(data.get("version"), (str, type(None)))
        ):
            raise CacheCorruptError("Malformed cache record", path=str(f), operation="read")

        # Distinct names can sanitise to the same file.
        if data.get("provider") != provider or data.get("package") != package:
            return None
        return data

    def _write(self, f: Path, record: dict[str, Any]) -> None:
        """Write a record atomically; failures are logged, never raised."""
        start = time.perf_counter()
        tmp: str | None = None
        try:
            f.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=f.parent, prefix=f".{f.stem}.", suffix=".tmp")
            with os.fdopen(fd, "w") as fh:
                json.dump(record, fh)
            os.replace(tmp, f)
            tmp = None
            duration_ms = int((time.perf_counter() - start) * 1000)
            log.debug("cache_set", path=str(f), duration_ms=duration_ms)

        except OSError as e:
            log.error("cache_write_error", path=str(f), error=str(e))

        finally:
            if tmp is not None:
                Path(tmp).unlink(missing_ok=True)
