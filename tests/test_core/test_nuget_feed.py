from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from depscout.core.cancellation import CancellationToken
from depscout.core.nuget_feed import (
    NuGetRegistrationFeed,
    NuGetV3FeedClient,
    _find_registration_base,
    _parse_leaf,
)
from depscout.exceptions import NetworkError, OperationCancelledError
from depscout.models.source import PackageSource
from depscout.models.version import NuGetVersion
from depscout.utils.http import HTTPClient

INDEX_URL = "https://feed.example/v3/index.json"
REG_BASE = "https://feed.example/v3/registration5-gz-semver2/"
SOURCE = PackageSource("example", INDEX_URL)

SERVICE_INDEX: Dict[str, Any] = {
    "version": "3.0.0",
    "resources": [
        {"@id": "https://feed.example/v3/search", "@type": "SearchQueryService"},
        {"@id": "https://feed.example/v3/registration5-gz/", "@type": "RegistrationsBaseUrl/3.4.0"},
        {"@id": REG_BASE, "@type": "RegistrationsBaseUrl/3.6.0"},
    ],
}


def leaf(version: str, listed: bool = True) -> Dict[str, Any]:
    return {"catalogEntry": {"id": "Foo", "version": version, "listed": listed}}


def v(text: str) -> NuGetVersion:
    return NuGetVersion.parse(text)


def make_http(routes: Dict[str, Any], hits: List[str]) -> HTTPClient:
    """HTTPClient whose transport serves JSON from *routes*; anything else is 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        hits.append(url)
        if url not in routes:
            return httpx.Response(404)
        body = routes[url]
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, json=body)

    return HTTPClient(max_retries=0, transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestFindRegistrationBase:
    """Tests for _find_registration_base."""

    def test_prefers_semver2_resource(self) -> None:
        """Test RegistrationsBaseUrl/3.6.0 wins over older versions."""
        assert _find_registration_base(SERVICE_INDEX) == REG_BASE

    def test_type_list_and_trailing_slash(self) -> None:
        """Test @type lists are accepted and a trailing slash is added."""
        index = {
            "resources": [
                {"@id": "https://x/reg", "@type": ["RegistrationsBaseUrl", "Other"]},
            ]
        }

        assert _find_registration_base(index) == "https://x/reg/"

    def test_missing_resource(self) -> None:
        """Test an index without a registration resource yields None."""
        assert _find_registration_base({"resources": []}) is None
        assert _find_registration_base({}) is None


@pytest.mark.unit
class TestParseLeaf:
    """Tests for _parse_leaf."""

    def test_listed_leaf(self) -> None:
        """Test a normal leaf."""
        parsed = _parse_leaf(leaf("1.2.3"))

        assert parsed is not None
        assert parsed.version == v("1.2.3")
        assert parsed.listed is True

    def test_unlisted_leaf(self) -> None:
        """Test the listed flag is carried over."""
        parsed = _parse_leaf(leaf("1.2.3", listed=False))

        assert parsed is not None
        assert parsed.listed is False

    @pytest.mark.parametrize(
        "item",
        [None, "1.0.0", {}, {"catalogEntry": "x"}, {"catalogEntry": {"version": "bad"}}],
    )
    def test_unusable_leaves(self, item: Any) -> None:
        """Test malformed leaves are skipped."""
        assert _parse_leaf(item) is None


@pytest.mark.unit
class TestNuGetV3FeedClient:
    """Tests for feed resolution."""

    @pytest.mark.asyncio
    async def test_resolve(self) -> None:
        """Test a service index resolves to a registration feed."""
        hits: List[str] = []
        async with make_http({INDEX_URL: SERVICE_INDEX}, hits) as http:
            feed = await NuGetV3FeedClient(http).resolve(SOURCE)

        assert isinstance(feed, NuGetRegistrationFeed)
        assert feed.registration_base == REG_BASE
        assert feed.source == SOURCE

    @pytest.mark.asyncio
    async def test_resolve_is_cached(self) -> None:
        """Test the service index is read once per source."""
        hits: List[str] = []
        async with make_http({INDEX_URL: SERVICE_INDEX}, hits) as http:
            client = NuGetV3FeedClient(http)
            first = await client.resolve(SOURCE)
            second = await client.resolve(SOURCE)

        assert first is second
        assert hits == [INDEX_URL]

    @pytest.mark.asyncio
    async def test_unreachable_index(self) -> None:
        """Test a failing service index resolves to None."""
        hits: List[str] = []
        async with make_http({INDEX_URL: 500}, hits) as http:
            assert await NuGetV3FeedClient(http).resolve(SOURCE) is None

    @pytest.mark.asyncio
    async def test_index_without_registration(self) -> None:
        """Test an index lacking a registration resource resolves to None."""
        hits: List[str] = []
        async with make_http({INDEX_URL: {"resources": []}}, hits) as http:
            assert await NuGetV3FeedClient(http).resolve(SOURCE) is None


@pytest.mark.unit
class TestNuGetRegistrationFeed:
    """Tests for registration-based version listing."""

    REG_URL = f"{REG_BASE}foo/index.json"

    def _feed(self, http: HTTPClient) -> NuGetRegistrationFeed:
        return NuGetRegistrationFeed(http, SOURCE, REG_BASE, asyncio.Semaphore(4))

    @pytest.mark.asyncio
    async def test_inline_pages(self) -> None:
        """Test versions from inlined pages, filtered by flags."""
        registration = {
            "items": [
                {"items": [leaf("1.0.0"), leaf("1.1.0-beta"), leaf("1.2.0", listed=False)]},
                {"items": [leaf("2.0.0")]},
            ]
        }
        hits: List[str] = []
        async with make_http({self.REG_URL: registration}, hits) as http:
            feed = self._feed(http)

            stable = await feed.get_versions("Foo", include_prerelease=False)
            everything = await feed.get_versions(
                "Foo", include_prerelease=True, include_unlisted=True
            )

        assert stable == {v("1.0.0"), v("2.0.0")}
        assert everything == {v("1.0.0"), v("1.1.0-beta"), v("1.2.0"), v("2.0.0")}
        assert hits == [self.REG_URL]

    @pytest.mark.asyncio
    async def test_remote_pages_fetched(self) -> None:
        """Test pages without inline items are fetched by their @id."""
        page_url = f"{REG_BASE}foo/page/1.0.0/2.0.0.json"
        registration = {"items": [{"@id": page_url, "count": 2}]}
        page = {"items": [leaf("1.0.0"), leaf("2.0.0")]}
        hits: List[str] = []
        async with make_http({self.REG_URL: registration, page_url: page}, hits) as http:
            versions = await self._feed(http).get_versions("Foo", include_prerelease=False)

        assert versions == {v("1.0.0"), v("2.0.0")}
        assert page_url in hits

    @pytest.mark.asyncio
    async def test_unknown_package(self) -> None:
        """Test a 404 registration means the package does not exist."""
        hits: List[str] = []
        async with make_http({}, hits) as http:
            feed = self._feed(http)

            assert await feed.exists("Foo", include_prerelease=True) is False
            assert await feed.get_versions("Foo", include_prerelease=True) == frozenset()

    @pytest.mark.asyncio
    async def test_exists_respects_prerelease_flag(self) -> None:
        """Test a prerelease-only package exists only when prereleases are included."""
        registration = {"items": [{"items": [leaf("1.0.0-beta")]}]}
        hits: List[str] = []
        async with make_http({self.REG_URL: registration}, hits) as http:
            feed = self._feed(http)

            assert await feed.exists("Foo", include_prerelease=False) is False
            assert await feed.exists("Foo", include_prerelease=True) is True

    @pytest.mark.asyncio
    async def test_registration_cached_case_insensitively(self) -> None:
        """Test exists then get_versions costs one request, whatever the id casing."""
        registration = {"items": [{"items": [leaf("1.0.0")]}]}
        hits: List[str] = []
        async with make_http({self.REG_URL: registration}, hits) as http:
            feed = self._feed(http)
            await feed.exists("Foo", include_prerelease=False)
            await feed.get_versions("FOO", include_prerelease=False)

        assert hits == [self.REG_URL]

    @pytest.mark.asyncio
    async def test_server_error_propagates(self) -> None:
        """Test non-404 failures raise so the caller can skip the feed."""
        hits: List[str] = []
        async with make_http({self.REG_URL: 500}, hits) as http:
            with pytest.raises(NetworkError):
                await self._feed(http).get_versions("Foo", include_prerelease=False)

    @pytest.mark.asyncio
    async def test_cancelled_token(self) -> None:
        """Test a cancelled token stops the fetch before any request."""
        token = CancellationToken()
        token.cancel()
        hits: List[str] = []
        async with make_http({}, hits) as http:
            with pytest.raises(OperationCancelledError):
                await self._feed(http).get_versions(
                    "Foo", include_prerelease=False, cancellation_token=token
                )

        assert hits == []
