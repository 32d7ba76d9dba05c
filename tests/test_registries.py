"""Tests for HTTP registry providers against a mocked transport."""

from __future__ import annotations

import httpx
import pytest

from latest.core.errors import (
    NetworkError,
    ProviderParseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    TransientError,
)
from latest.providers.base import dig
from latest.providers.python import PipProvider
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
    parse_github_repo,
    parse_maven_coordinates,
)


def mock_client(routes: dict[str, object], seen: list[httpx.Request] | None = None) -> httpx.AsyncClient:
    """Client answering JSON bodies by URL path; unknown paths get a 404."""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(404)
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "provider_cls,package,path,body,expected",
    [
        (NpmProvider, "express", "/express/latest", {"version": "5.1.0"}, "5.1.0"),
        (NpmProvider, "@types/node", "/@types/node/latest", {"version": "22.10.2"}, "22.10.2"),
        (PipProvider, "flask", "/pypi/flask/json", {"info": {"version": "3.1.2"}}, "3.1.2"),
        (CargoProvider, "serde", "/api/v1/crates/serde", {"crate": {"max_stable_version": "1.0.228"}}, "1.0.228"),
        (GemProvider, "rails", "/api/v1/gems/rails.json", {"version": "8.0.1"}, "8.0.1"),
        (HexProvider, "phoenix", "/api/packages/phoenix", {"latest_stable_version": "1.7.18"}, "1.7.18"),
        (PubProvider, "http", "/api/packages/http", {"latest": {"version": "1.2.2"}}, "1.2.2"),
        (GoProvider, "github.com/BurntSushi/toml", "/github.com/!burnt!sushi/toml/@latest", {"Version": "v1.4.0"}, "1.4.0"),
        (ComposerProvider, "Laravel/Framework", "/p2/laravel/framework.json",
         {"packages": {"laravel/framework": [{"version": "v11.36.1"}]}}, "11.36.1"),
        (NugetProvider, "Newtonsoft.Json", "/v3-flatcontainer/newtonsoft.json/index.json",
         {"versions": ["12.0.3", "13.0.3", "14.0.0-beta1"]}, "13.0.3"),
        (SwiftProvider, "https://github.com/apple/swift-argument-parser.git",
         "/repos/apple/swift-argument-parser/tags", [{"name": "1.5.0"}, {"name": "1.4.0"}], "1.5.0"),
        (MavenProvider, "org.slf4j:slf4j-api", "/solrsearch/select",
         {"response": {"docs": [{"latestVersion": "2.0.16"}]}}, "2.0.16"),
    ],
)
async def test_registry_answers(provider_cls, package, path, body, expected):
    async with mock_client({path: body}) as client:
        assert await provider_cls(client=client).query(package) == expected


@pytest.mark.asyncio
async def test_docker_picks_greatest_numeric_tag():
    tags = {"results": [
        {"name": "latest"},
        {"name": "1.27.3"},
        {"name": "1.27"},
        {"name": "mainline"},
        {"name": "1.29.0-alpine"},
        {"name": "v1.28.0"},
    ]}
    seen: list[httpx.Request] = []
    async with mock_client({"/v2/repositories/library/nginx/tags": tags}, seen) as client:
        assert await DockerProvider(client=client).query("nginx") == "1.28.0"
    assert seen[0].url.params["page_size"] == "100"


@pytest.mark.asyncio
async def test_docker_qualified_image_is_not_prefixed():
    tags = {"results": [{"name": "2.1"}]}
    async with mock_client({"/v2/repositories/grafana/grafana/tags": tags}) as client:
        assert await DockerProvider(client=client).query("grafana/grafana") == "2.1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "provider_cls,package",
    [(ComposerProvider, "monolog"), (MavenProvider, "slf4j-api"), (SwiftProvider, "swift-nio")],
)
async def test_invalid_names_are_absent_without_a_request(provider_cls, package):
    seen: list[httpx.Request] = []
    async with mock_client({}, seen) as client:
        assert await provider_cls(client=client).query(package) is None
    assert seen == []


class TestStatusPolicy:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 410])
    async def test_missing_package_is_absent(self, status):
        async with mock_client({"/nope/latest": httpx.Response(status)}) as client:
            assert await NpmProvider(client=client).query("nope") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_throttling_and_server_errors_are_transient(self, status):
        async with mock_client({"/express/latest": httpx.Response(status)}) as client:
            with pytest.raises(NetworkError) as exc:
                await NpmProvider(client=client).query("express")
        assert isinstance(exc.value, TransientError)
        assert exc.value.context["provider"] == "npm"
        assert exc.value.context["package"] == "express"

    @pytest.mark.asyncio
    async def test_other_client_errors_are_unavailable(self):
        async with mock_client({"/express/latest": httpx.Response(403)}) as client:
            with pytest.raises(ProviderUnavailableError) as exc:
                await NpmProvider(client=client).query("express")
        assert not isinstance(exc.value, TransientError)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        body = httpx.Response(200, text="<html>")
        async with mock_client({"/express/latest": body}) as client:
            with pytest.raises(ProviderParseError):
                await NpmProvider(client=client).query("express")

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_a_parse_error(self):
        body = {"packages": {"a/b": ["not an object"]}}
        async with mock_client({"/p2/a/b.json": body}) as client:
            with pytest.raises(ProviderParseError):
                await ComposerProvider(client=client).query("a/b")

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ProviderTimeoutError):
                await NpmProvider(client=client).query("express")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = NpmProvider(client=client)
            with pytest.raises(NetworkError):
                await provider.query("express")
            assert await provider.get_version("express") is None


def test_dig():
    data = {"a": {"b": {"c": "1.0"}}, "n": 3}
    assert dig(data, "a.b.c") == "1.0"
    assert dig(data, "a.x") is None
    assert dig(data, "n") is None
    assert dig(["list"], "a") is None


def test_parse_maven_coordinates():
    assert parse_maven_coordinates("org.slf4j:slf4j-api") == ("org.slf4j", "slf4j-api")
    assert parse_maven_coordinates("slf4j-api") is None
    assert parse_maven_coordinates("a:b:c") is None
    assert parse_maven_coordinates(":b") is None


@pytest.mark.parametrize(
    "package,expected",
    [
        ("apple/swift-nio", ("apple", "swift-nio")),
        ("github.com/apple/swift-nio", ("apple", "swift-nio")),
        ("https://github.com/apple/swift-nio.git", ("apple", "swift-nio")),
        ("swift-nio", None),
    ],
)
def test_parse_github_repo(package, expected):
    assert parse_github_repo(package) == expected
