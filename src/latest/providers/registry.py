"""Provider catalogue: identity, ecosystem, locality and precedence."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import httpx

from latest.core.config import DEFAULT_TIMEOUT
from latest.core.errors import UnknownSourceError
from latest.core.logging import get_logger
from latest.core.models import Ecosystem
from latest.providers.base import Provider
from latest.providers.python import CondaProvider, PipProvider, UvProvider, VenvProvider
from latest.providers.registries import (
    CargoProvider,
    ComposerProvider,
    DockerProvider,
    GemProvider,
    GoProvider,
    HexProvider,
    MavenProvider,
    NpmProvider,
    NugetProvider,
    PubProvider,
    SwiftProvider,
)
from latest.providers.system import AptProvider, BrewProvider, PathProvider

log = get_logger(__name__)


class ProviderRegistry:
    """Catalogue of providers.

    Declaration order is the default precedence. A configured precedence
    selects and reorders the providers used for default-mode lookups;
    identities it names that are not registered are ignored.
    """

    def __init__(self, providers: Iterable[Provider], precedence: Sequence[str] | None = None) -> None:
        self._providers: dict[str, Provider] = {}
        for provider in providers:
            if provider.name in self._providers:
                raise ValueError(f"Duplicate provider identity: {provider.name}")
            self._providers[provider.name] = provider

        self._precedence = self._resolve_precedence(precedence)

    def _resolve_precedence(self, precedence: Sequence[str] | None) -> list[Provider]:
        if precedence is None:
            return list(self._providers.values())

        ordered: list[Provider] = []
        for identity in precedence:
            provider = self._providers.get(identity)
            if provider is None:
                log.warning("precedence_unknown_source", source=identity)
            elif provider not in ordered:
                ordered.append(provider)

        if not ordered:
            log.warning("precedence_empty", configured=list(precedence))
            return list(self._providers.values())
        return ordered

    @property
    def identities(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, identity: object) -> bool:
        return identity in self._providers

    def provider_by_identity(self, identity: str) -> Provider:
        """Look up a provider by identity.

        Raises:
            UnknownSourceError: If ``identity`` is not registered.
        """
        try:
            return self._providers[identity]
        except KeyError:
            raise UnknownSourceError(source=identity, known=self.identities) from None

    def all_providers(self) -> list[Provider]:
        """Every registered provider, in declaration order."""
        return list(self._providers.values())

    def providers_in_ecosystem(self, ecosystem: Ecosystem) -> list[Provider]:
        return [p for p in self._precedence if p.ecosystem is ecosystem]

    def local_providers(self, ecosystem: Ecosystem | None = None) -> list[Provider]:
        """Providers reporting installed versions, optionally for one ecosystem."""
        return [
            p for p in self._precedence
            if p.is_local and (ecosystem is None or p.ecosystem is ecosystem)
        ]

    def registry_providers(self, ecosystem: Ecosystem | None = None) -> list[Provider]:
        """Providers reporting available versions, optionally for one ecosystem."""
        return [
            p for p in self._precedence
            if not p.is_local and (ecosystem is None or p.ecosystem is ecosystem)
        ]


def build_registry(
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    precedence: Sequence[str] | None = None,
    root: Path | None = None,
) -> ProviderRegistry:
    """Build the standard catalogue.

    Args:
        client: Shared HTTP client for registry providers.
        timeout: Per-call timeout applied to every provider.
        precedence: Optional configured precedence of identities.
        root: Project directory for project-aware providers.

    Returns:
        The populated ProviderRegistry.
    """
    def http(cls):
        return cls(client=client, timeout=timeout)

    providers: list[Provider] = [
        PathProvider(timeout=timeout),
        BrewProvider(timeout=timeout),
        AptProvider(timeout=timeout),
        http(NpmProvider),
        UvProvider(root=root, timeout=timeout),
        VenvProvider(timeout=timeout),
        http(PipProvider),
        CondaProvider(timeout=timeout),
        http(GoProvider),
        http(CargoProvider),
        http(GemProvider),
        http(HexProvider),
        http(PubProvider),
        http(ComposerProvider),
        http(MavenProvider),
        http(NugetProvider),
        http(SwiftProvider),
        http(DockerProvider),
    ]
    return ProviderRegistry(providers, precedence=precedence)
