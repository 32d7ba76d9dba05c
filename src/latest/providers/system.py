"""System-level providers: executables on $PATH, Homebrew and apt."""

from __future__ import annotations

import shutil
from typing import Any

from latest.analysis.versions import extract_version, extract_version_field
from latest.core.errors import CommandFailedError, ProviderTimeoutError, ProviderUnavailableError
from latest.core.logging import get_logger
from latest.core.models import Ecosystem
from latest.core.shell import run_capture, run_json
from latest.providers.base import BaseProvider

log = get_logger(__name__)

VERSION_FLAGS = ("--version", "-version", "version", "-V")
UNKNOWN_VERSION = "installed"


class PathProvider(BaseProvider):
    """Reports the version of an executable found on $PATH."""

    name = "path"
    ecosystem = Ecosystem.SYSTEM
    is_local = True

    async def fetch(self, package: str) -> str | None:
        executable = shutil.which(package)
        if executable is None:
            return None

        flag_timeout = self.timeout / len(VERSION_FLAGS)
        for flag in VERSION_FLAGS:
            try:
                out, err, _ = await run_capture(executable, flag, timeout=flag_timeout)
            except (ProviderTimeoutError, ProviderUnavailableError) as e:
                log.debug("version_flag_failed", package=package, flag=flag, error=str(e))
                continue

            version = extract_version(out) or extract_version(err)
            if version:
                return version

        log.info("version_unrecognised", package=package, executable=executable)
        return UNKNOWN_VERSION


class BrewProvider(BaseProvider):
    """Latest stable Homebrew formula or cask version."""

    name = "brew"
    ecosystem = Ecosystem.SYSTEM

    async def fetch(self, package: str) -> str | None:
        if shutil.which("brew") is None:
            raise ProviderUnavailableError("brew is not installed")

        try:
            data = await run_json("brew", "info", "--json=v2", package, timeout=self.timeout)
        except CommandFailedError:
            return None
        return parse_brew_info(data)


def parse_brew_info(data: dict[str, Any]) -> str | None:
    """Pick the stable formula version, falling back to the cask version."""
    formula = (data.get("formulae") or [{}])[0]
    stable = (formula.get("versions") or {}).get("stable")
    if stable:
        return stable

    cask = (data.get("casks") or [{}])[0]
    return cask.get("version") or None


class AptProvider(BaseProvider):
    """Candidate version known to apt."""

    name = "apt"
    ecosystem = Ecosystem.SYSTEM

    async def fetch(self, package: str) -> str | None:
        if shutil.which("apt-cache") is None:
            raise ProviderUnavailableError("apt-cache is not installed")

        out, _, code = await run_capture("apt-cache", "show", package, timeout=self.timeout)
        if code != 0:
            return None
        return extract_version_field(out)
