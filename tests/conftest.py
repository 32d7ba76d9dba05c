from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from latest.core.cache import ResponseCache
from latest.core.engine import LookupEngine
from latest.core.models import Ecosystem
from latest.providers.base import BaseProvider
from latest.providers.registry import ProviderRegistry


class FakeProvider(BaseProvider):
    """In-memory provider answering from a dict and counting calls."""

    def __init__(
        self,
        name: str,
        ecosystem: Ecosystem,
        versions: dict[str, str] | None = None,
        local: bool = False,
        error: Exception | None = None,
        delays: dict[str, float] | None = None,
        timeout: float = 5.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self.name = name
        self.ecosystem = ecosystem
        self.is_local = local
        self.versions = versions or {}
        self.error = error
        self.delays = delays or {}
        self.calls: list[str] = []

    async def fetch(self, package: str) -> str | None:
        self.calls.append(package)
        delay = self.delays.get(package)
        if delay:
            await asyncio.sleep(delay)
        if self.error is not None:
            raise self.error
        return self.versions.get(package)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep logs, config and cache of every test inside tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("LATEST_CONFIG_DIR", str(home / ".latest"))
    monkeypatch.setenv("LATEST_CACHE_DIR", str(home / ".latest" / "cache"))
    return home


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def cache(tmp_path: Path) -> ResponseCache:
    return ResponseCache(tmp_path / "cache", ttl=3600)


@pytest.fixture
def make_engine(cache: ResponseCache):
    def factory(
        *providers: BaseProvider, precedence: list[str] | None = None, concurrency: int = 4
    ) -> LookupEngine:
        registry = ProviderRegistry(providers, precedence=precedence)
        return LookupEngine(registry, cache, concurrency=concurrency)
    return factory
