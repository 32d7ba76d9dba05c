"""Provider protocol and shared provider implementations."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol
from urllib.parse import quote

import httpx

from latest.analysis.versions import strip_v
from latest.core.config import DEFAULT_TIMEOUT
from latest.core.errors import ProviderError, ProviderParseError, ProviderTimeoutError
from latest.core.http import build_client, get_json
from latest.core.logging import get_logger
from latest.core.models import Ecosystem

log = get_logger(__name__)


class Provider(Protocol):
    """A backend that can report a package's version."""

    name: str
    ecosystem: Ecosystem
    is_local: bool

    async def query(self, package: str) -> str | None:
        """Get the version, raising ProviderError subclasses on failure."""
        ...

    async def get_version(self, package: str) -> str | None:
        """Get the version, or None on any failure."""
        ...


class BaseProvider(ABC):
    """Common behaviour for providers.

    Subclasses set ``name`` and ``ecosystem`` and implement ``fetch``.
    """

    name: ClassVar[str]
    ecosystem: ClassVar[Ecosystem]
    is_local: ClassVar[bool] = False

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @abstractmethod
    async def fetch(self, package: str) -> str | None:
        """Ask the backend for a version.

        Returns None when the backend definitely has no such package and
        raises ProviderError subclasses for anything else.
        """
        ...

    async def query(self, package: str) -> str | None:
        """Run ``fetch`` under the per-call timeout.

        Raises:
            ProviderTimeoutError: The call exceeded ``self.timeout``.
            ProviderParseError: The backend answer had an unexpected shape.
            ProviderError: Any other provider failure.
        """
        start = time.perf_counter()
        try:
            version = await asyncio.wait_for(self.fetch(package), self.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(provider=self.name, package=package, timeout=self.timeout) from e
        except ProviderError as e:
            raise e.with_context(provider=self.name, package=package)
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise ProviderParseError(
                f"Unexpected response shape: {type(e).__name__}",
                provider=self.name,
                package=package,
                context={"error": str(e)}
            ) from e

        duration_ms = int((time.perf_counter() - start) * 1000)
        log.debug(
            "provider_query_complete",
            provider=self.name,
            package=package,
            found=version is not None,
            duration_ms=duration_ms
        )
        return version or None

    async def get_version(self, package: str) -> str | None:
        try:
            return await self.query(package)
        except ProviderError as e:
            log.info("provider_failed", provider=self.name, package=package, error=str(e))
            return None


class JsonApiProvider(BaseProvider):
    """Provider backed by a registry's JSON HTTP API.

    Subclasses set ``url_template`` (with a ``{package}`` placeholder) and a
    dotted ``version_path``, or override ``url_for``/``extract``.
    """

    url_template: ClassVar[str]
    version_path: ClassVar[str] = "version"

    def __init__(
        self, client: httpx.AsyncClient | None = None, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        super().__init__(timeout=timeout)
        self.client = client

    def url_for(self, package: str) -> str | None:
        """Build the request URL, or None if the name cannot be valid here."""
        return self.url_template.format(package=quote(package, safe="@/"))

    def extract(self, data: Any, package: str) -> str | None:
        return dig(data, self.version_path)

    async def fetch(self, package: str) -> str | None:
        url = self.url_for(package)
        if url is None:
            return None

        if self.client is None:
            async with build_client(self.timeout) as client:
                data = await get_json(client, url)
        else:
            data = await get_json(self.client, url)

        if data is None:
            return None
        version = self.extract(data, package)
        return strip_v(version) if version else None


def dig(data: Any, path: str) -> str | None:
    """Follow a dotted key path through nested JSON objects."""
    current = data
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current if isinstance(current, str) else None
