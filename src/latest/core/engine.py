"""Lookup engine: select providers, query them concurrently, classify."""

from __future__ import annotations

import asyncio
import time
from typing import Sequence

from latest.analysis.status import derive_status
from latest.analysis.versions import newest
from latest.core.cache import ResponseCache
from latest.core.config import DEFAULT_CONCURRENCY
from latest.core.errors import UserError
from latest.core.logging import get_logger
from latest.core.models import (
    Ecosystem,
    LookupMode,
    LookupRequest,
    LookupResult,
    Status,
    VersionInfo,
)
from latest.providers.base import Provider
from latest.providers.registry import ProviderRegistry

log = get_logger(__name__)


class LookupEngine:
    """Resolves installed and latest versions of packages.

    The engine only relies on the Provider capabilities (identity,
    ecosystem, locality, version query) and the registry's lookups, so new
    providers need no change here.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        cache: ResponseCache,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self._slots = asyncio.Semaphore(concurrency)

    async def resolve_many(self, requests: Sequence[LookupRequest]) -> list[LookupResult]:
        """Resolve several packages concurrently.

        Results come back in request order whatever order lookups finish in.
        """
        start = time.perf_counter()
        log.info("lookup_batch_start", count=len(requests))

        results = await asyncio.gather(*(
            self.resolve(r.package, r.mode, source=r.source, hint=r.hint) for r in requests
        ))

        duration_ms = int((time.perf_counter() - start) * 1000)
        log.info("lookup_batch_complete", count=len(results), duration_ms=duration_ms)
        return list(results)

    async def resolve(
        self,
        package: str,
        mode: LookupMode = LookupMode.DEFAULT,
        *,
        source: str | None = None,
        hint: str | None = None,
    ) -> LookupResult:
        """Look up one package.

        Args:
            package: Package or command name.
            mode: Provider selection and reduction policy.
            source: Provider identity, required for explicit mode.
            hint: Provider suggested by a project manifest (default mode).

        Returns:
            The classified LookupResult.

        Raises:
            UnknownSourceError: If ``source`` or ``hint`` is not registered.
        """
        start = time.perf_counter()

        if mode is LookupMode.EXPLICIT:
            if source is None:
                raise UserError("Explicit lookup needs a source", context={"package": package})
            result = await self._resolve_explicit(package, self.registry.provider_by_identity(source))
        elif mode is LookupMode.ALL:
            result = await self._resolve_all(package)
        else:
            ecosystem = self.registry.provider_by_identity(hint).ecosystem if hint else None
            result = await self._resolve_default(package, ecosystem)

        duration_ms = int((time.perf_counter() - start) * 1000)
        log.info(
            "lookup_complete",
            package=package,
            mode=mode.value,
            status=result.status.value,
            duration_ms=duration_ms
        )
        return result

    async def _query(self, provider: Provider, package: str) -> VersionInfo | None:
        async with self._slots:
            version = await self.cache.get_or_fetch(provider, package)
        if version is None:
            return None
        return VersionInfo(version=version, source=provider.name, local=provider.is_local)

    async def _query_each(self, providers: Sequence[Provider], package: str) -> list[VersionInfo]:
        """Query providers concurrently, keeping the given order for the answers."""
        answers = await asyncio.gather(*(self._query(p, package) for p in providers))
        return [a for a in answers if a is not None]

    async def _resolve_explicit(self, package: str, provider: Provider) -> LookupResult:
        info = await self._query(provider, package)
        if info is None:
            return LookupResult(package=package, status=Status.NOT_FOUND)
        return LookupResult(package=package, status=Status.UP_TO_DATE, installed=info, latest=info)

    async def _resolve_all(self, package: str) -> LookupResult:
        available = await self._query_each(self.registry.all_providers(), package)
        if not available:
            return LookupResult(package=package, status=Status.NOT_FOUND)
        return LookupResult(package=package, status=Status.UP_TO_DATE, available=tuple(available))

    async def _resolve_default(self, package: str, ecosystem: Ecosystem | None) -> LookupResult:
        """Local-first lookup that never compares across ecosystems.

        Without a manifest hint the first local provider (by precedence)
        that knows the package fixes both the installed version and the
        ecosystem. With a hint only that ecosystem is consulted.
        """
        locals_ = self.registry.local_providers(ecosystem)
        installed = await self._query_each(locals_, package)

        if installed:
            current = installed[0]
            installed_ecosystem = self.registry.provider_by_identity(current.source).ecosystem
            candidates = await self._query_each(
                self.registry.registry_providers(installed_ecosystem), package
            )
            best = newest(candidates, key=lambda v: v.version)
            status = derive_status(current.version, best.version if best else None)
            latest = best if status is Status.OUTDATED else current
            return LookupResult(package=package, status=status, installed=current, latest=latest)

        available = await self._query_each(self.registry.registry_providers(ecosystem), package)
        if not available:
            return LookupResult(package=package, status=Status.NOT_FOUND)

        return LookupResult(
            package=package,
            status=Status.NOT_INSTALLED,
            latest=newest(available, key=lambda v: v.version),
            available=tuple(available),
        )
