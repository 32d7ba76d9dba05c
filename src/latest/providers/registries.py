"""Providers backed by language package registries over HTTP."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote

from latest.analysis.versions import newest, strip_v
from latest.core.models import Ecosystem
from latest.providers.base import JsonApiProvider

_NUMERIC_TAG = re.compile(r"v?\d+(\.\d+)*")


class NpmProvider(JsonApiProvider):
    name = "npm"
    ecosystem = Ecosystem.NPM
    url_template = "https://registry.npmjs.org/{package}/latest"


class GoProvider(JsonApiProvider):
    """Latest module version from the Go module proxy."""

    name = "go"
    ecosystem = Ecosystem.GO
    url_template = "https://proxy.golang.org/{package}/@latest"
    version_path = "Version"

    def url_for(self, package: str) -> str | None:
        # The proxy expects upper-case letters as "!" + lower-case.
        escaped = re.sub(r"[A-Z]", lambda m: "!" + m.group(0).lower(), package)
        return self.url_template.format(package=quote(escaped, safe="/!"))


class CargoProvider(JsonApiProvider):
    name = "cargo"
    ecosystem = Ecosystem.CARGO
    url_template = "https://crates.io/api/v1/crates/{package}"
    version_path = "crate.max_stable_version"


class GemProvider(JsonApiProvider):
    name = "gem"
    ecosystem = Ecosystem.RUBY
    url_template = "https://rubygems.org/api/v1/gems/{package}.json"


class HexProvider(JsonApiProvider):
    name = "hex"
    ecosystem = Ecosystem.ERLANG
    url_template = "https://hex.pm/api/packages/{package}"
    version_path = "latest_stable_version"


class PubProvider(JsonApiProvider):
    name = "pub"
    ecosystem = Ecosystem.DART
    url_template = "https://pub.dev/api/packages/{package}"
    version_path = "latest.version"


class ComposerProvider(JsonApiProvider):
    """Newest release on Packagist (``vendor/package``)."""

    name = "composer"
    ecosystem = Ecosystem.PHP
    url_template = "https://repo.packagist.org/p2/{package}.json"

    def url_for(self, package: str) -> str | None:
        if "/" not in package:
            return None
        return super().url_for(package.lower())

    def extract(self, data: Any, package: str) -> str | None:
        releases = (data.get("packages") or {}).get(package.lower()) or []
        return releases[0].get("version") if releases else None


class MavenProvider(JsonApiProvider):
    """Latest artifact version from Maven Central (``group:artifact``)."""

    name = "maven"
    ecosystem = Ecosystem.JVM
    url_template = "https://search.maven.org/solrsearch/select?q=g:{group}+AND+a:{artifact}&rows=1&wt=json"

    def url_for(self, package: str) -> str | None:
        coordinates = parse_maven_coordinates(package)
        if coordinates is None:
            return None
        group, artifact = coordinates
        return self.url_template.format(group=quote(group, safe=""), artifact=quote(artifact, safe=""))

    def extract(self, data: Any, package: str) -> str | None:
        docs = (data.get("response") or {}).get("docs") or []
        return docs[0].get("latestVersion") if docs else None


def parse_maven_coordinates(package: str) -> tuple[str, str] | None:
    parts = package.split(":")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


class NugetProvider(JsonApiProvider):
    """Newest stable version from the NuGet flat container."""

    name = "nuget"
    ecosystem = Ecosystem.DOTNET
    url_template = "https://api.nuget.org/v3-flatcontainer/{package}/index.json"

    def url_for(self, package: str) -> str | None:
        return self.url_template.format(package=quote(package.lower(), safe=""))

    def extract(self, data: Any, package: str) -> str | None:
        stable = [v for v in data.get("versions", []) if isinstance(v, str) and "-" not in v]
        return stable[-1] if stable else None


class SwiftProvider(JsonApiProvider):
    """Newest tag of a Swift package's GitHub repository."""

    name = "swift"
    ecosystem = Ecosystem.SWIFT
    url_template = "https://api.github.com/repos/{owner}/{repo}/tags"

    def url_for(self, package: str) -> str | None:
        repo = parse_github_repo(package)
        if repo is None:
            return None
        owner, name = repo
        return self.url_template.format(owner=quote(owner, safe=""), repo=quote(name, safe=""))

    def extract(self, data: Any, package: str) -> str | None:
        if not isinstance(data, list) or not data:
            return None
        return data[0].get("name")


def parse_github_repo(package: str) -> tuple[str, str] | None:
    """Accept ``owner/repo`` with optional scheme, host and ``.git`` suffix."""
    cleaned = package.removeprefix("https://").removeprefix("http://")
    cleaned = cleaned.removeprefix("github.com/").removesuffix("/").removesuffix(".git")
    parts = cleaned.split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


class DockerProvider(JsonApiProvider):
    """Greatest numeric tag of a Docker Hub image."""

    name = "docker"
    ecosystem = Ecosystem.DOCKER
    url_template = "https://registry.hub.docker.com/v2/repositories/{package}/tags?page_size=100"

    def url_for(self, package: str) -> str | None:
        repository = package if "/" in package else f"library/{package}"
        return self.url_template.format(package=quote(repository, safe="/"))

    def extract(self, data: Any, package: str) -> str | None:
        tags = [
            r["name"] for r in data.get("results", [])
            if isinstance(r.get("name"), str) and _NUMERIC_TAG.fullmatch(r["name"])
        ]
        return newest(tags, key=strip_v)

