"""Data models for version lookups."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Ecosystem(Enum):
    """Partition of providers whose versions may be compared to each other."""

    SYSTEM = "system"
    PYTHON = "python"
    NPM = "npm"
    CARGO = "cargo"
    GO = "go"
    JVM = "jvm"
    PHP = "php"
    DOCKER = "docker"
    DOTNET = "dotnet"
    SWIFT = "swift"
    CONDA = "conda"
    RUBY = "ruby"
    ERLANG = "erlang"
    DART = "dart"


class LookupMode(Enum):
    """How providers are selected and their answers reduced."""

    DEFAULT = "default"
    EXPLICIT = "explicit"
    ALL = "all"


class Status(Enum):
    """Classification of a single package lookup."""

    UP_TO_DATE = "up_to_date"
    OUTDATED = "outdated"
    NOT_INSTALLED = "not_installed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class VersionInfo:
    """A version as reported by one provider."""

    version: str
    source: str
    local: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": self.version, "source": self.source}
        if self.local:
            data["local"] = True
        return data


@dataclass(frozen=True)
class LookupResult:
    """Outcome of looking up one package."""

    package: str
    status: Status
    installed: VersionInfo | None = None
    latest: VersionInfo | None = None
    available: tuple[VersionInfo, ...] = ()
    install_commands: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialise the result, leaving out empty fields."""
        data: dict[str, Any] = {"package": self.package, "status": self.status.value}
        if self.installed is not None:
            data["installed"] = self.installed.to_dict()
        if self.latest is not None:
            data["latest"] = self.latest.to_dict()
        if self.available:
            data["available"] = [v.to_dict() for v in self.available]
        if self.install_commands:
            data["install_commands"] = list(self.install_commands)
        return data


@dataclass(frozen=True)
class LookupRequest:
    """One package to look up and how.

    ``source`` names the provider for explicit mode. ``hint`` is the
    provider suggested by a project manifest; it fixes the ecosystem
    for a default-mode lookup.
    """

    package: str
    mode: LookupMode = LookupMode.DEFAULT
    source: str | None = None
    hint: str | None = None
