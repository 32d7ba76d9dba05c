"""Python providers: uv projects, the active environment, PyPI and conda."""

from __future__ import annotations

import shutil
import tomllib
from pathlib import Path
from typing import Any

from latest.analysis.versions import extract_version_field
from latest.core.config import DEFAULT_TIMEOUT
from latest.core.errors import CommandFailedError, ProviderUnavailableError
from latest.core.logging import get_logger
from latest.core.models import Ecosystem
from latest.core.shell import run_capture, run_json
from latest.providers.base import BaseProvider, JsonApiProvider

log = get_logger(__name__)


def normalise(name: str) -> str:
    return name.replace("-", "_").lower()


class UvProvider(BaseProvider):
    """Version locked or installed in the uv project at ``root``."""

    name = "uv"
    ecosystem = Ecosystem.PYTHON
    is_local = True

    def __init__(self, root: Path | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__(timeout=timeout)
        self.root = root or Path.cwd()

    def is_uv_project(self) -> bool:
        return (self.root / "uv.lock").exists() or (
            (self.root / "pyproject.toml").exists() and (self.root / ".venv").exists()
        )

    async def fetch(self, package: str) -> str | None:
        if not self.is_uv_project():
            return None

        locked = self.locked_version(package)
        if locked:
            return locked

        if shutil.which("uv") is None:
            return None
        out, _, code = await run_capture(
            "uv", "pip", "show", package, "--directory", str(self.root), timeout=self.timeout
        )
        return extract_version_field(out) if code == 0 else None

    def locked_version(self, package: str) -> str | None:
        """Read ``package``'s version from uv.lock, if the lock lists it."""
        lock = self.root / "uv.lock"
        try:
            data = tomllib.loads(lock.read_text())
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            log.warning("uv_lock_unreadable", path=str(lock), error=str(e))
            return None

        wanted = normalise(package)
        for entry in data.get("package", []):
            if normalise(str(entry.get("name", ""))) == wanted and entry.get("version"):
                return str(entry["version"])
        return None


class VenvProvider(BaseProvider):
    """Version installed in the active Python environment (``pip show``)."""

    name = "venv"
    ecosystem = Ecosystem.PYTHON
    is_local = True

    async def fetch(self, package: str) -> str | None:
        pip = next((cmd for cmd in ("pip", "pip3") if shutil.which(cmd)), None)
        if pip is None:
            return None

        out, _, code = await run_capture(pip, "show", package, timeout=self.timeout)
        return extract_version_field(out) if code == 0 else None


class PipProvider(JsonApiProvider):
    """Latest release on PyPI."""

    name = "pip"
    ecosystem = Ecosystem.PYTHON
    url_template = "https://pypi.org/pypi/{package}/json"
    version_path = "info.version"


class CondaProvider(BaseProvider):
    """Newest build listed by ``conda search``."""

    name = "conda"
    ecosystem = Ecosystem.CONDA

    async def fetch(self, package: str) -> str | None:
        if shutil.which("conda") is None:
            raise ProviderUnavailableError("conda is not installed")

        try:
            data = await run_json("conda", "search", package, "--json", timeout=self.timeout)
        except CommandFailedError:
            return None
        return parse_conda_search(data, package)


def parse_conda_search(data: dict[str, Any], package: str) -> str | None:
    builds = data.get(package) or []
    if not isinstance(builds, list) or not builds:
        return None
    return builds[-1].get("version") or None
