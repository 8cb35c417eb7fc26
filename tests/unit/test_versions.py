"""
Unit tests for version discovery.

Tests cover:
- Pre-release filtering and normalization
- Default version resolution and fallback
- Listing cache and coalescing
- Degraded mode on registry failures
"""

import asyncio

import httpx
import pytest

from schema_tester.config import RegistryConfig
from schema_tester.versions import (
    VersionResolver,
    is_listed,
    major_of,
    normalize_version,
)
from tests.support import CDN_URL, REGISTRY_URL, TAGS, registry_payload


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestNormalization:
    """Tests for version string helpers."""

    def test_prerelease_collapses_to_tag_name(self):
        """Pre-release counters are dropped."""
        assert normalize_version("3.22.0-beta.3", TAGS) == "3.22.0-beta"
        assert normalize_version("3.1.0-rc.1", TAGS) == "3.1.0-rc"

    def test_tag_target_kept_literally(self):
        """A version some tag points at is not collapsed."""
        assert normalize_version("3.0.0-beta.4", TAGS) == "3.0.0-beta.4"

    def test_stable_version_unchanged(self):
        """Stable versions have nothing to collapse."""
        assert normalize_version("3.24.2", TAGS) == "3.24.2"

    def test_tagged_prerelease_hidden(self):
        """Builds containing a tag name are hidden unless targeted."""
        assert not is_listed("3.22.0-beta.3", TAGS)
        assert is_listed("3.0.0-beta.4", TAGS)
        assert is_listed("3.1.0-rc.1", TAGS)

    def test_major_of(self):
        """Major number is parsed from the leading digits."""
        assert major_of("3.24.2") == 3
        assert major_of("v4.0.0-beta") == 4
        assert major_of("latest") is None


class TestVersionResolver:
    """Tests for VersionResolver."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def resolver(self, client, registry_config, clock):
        return VersionResolver(client, registry_config, clock=clock)

    @pytest.mark.asyncio
    async def test_lists_filtered_versions(self, cdn, resolver):
        """Hidden pre-releases are dropped and duplicates collapse."""
        versions = await resolver.list_versions()

        assert [v.version for v in versions] == [
            "3.24.3-canary.20250220T012004",
            "3.24.2",
            "3.24.1",
            "3.1.0-rc",
            "3.0.0-beta.4",
            "3.0.0-alpha.33",
            "1.11.17",
        ]
        assert resolver.degraded is False

    @pytest.mark.asyncio
    async def test_beta_build_not_listed(self, cdn, resolver):
        """A beta build that is not the beta tag target is not offered."""
        versions = [v.version for v in await resolver.list_versions()]

        assert "3.22.0-beta.3" not in versions
        assert "3.22.0-beta" not in versions

    @pytest.mark.asyncio
    async def test_links_preserved(self, cdn, resolver):
        """Registry links travel with each version."""
        versions = await resolver.list_versions()
        latest = next(v for v in versions if v.version == "3.24.2")

        assert latest.links.self_url == f"{REGISTRY_URL}/zod@3.24.2"
        assert latest.links.stats == "https://stats.test/zod@3.24.2"

    @pytest.mark.asyncio
    async def test_incompatible_majors_excluded(self, cdn, client):
        """Versions below min_major are left out."""
        config = RegistryConfig(registry_url=REGISTRY_URL, cdn_url=CDN_URL, min_major=3)
        resolver = VersionResolver(client, config)

        versions = [v.version for v in await resolver.list_versions()]

        assert "1.11.17" not in versions
        assert "3.24.2" in versions

    @pytest.mark.asyncio
    async def test_resolve_default_uses_latest_tag(self, cdn, resolver):
        """Default is the latest tag target."""
        assert await resolver.resolve_default() == "3.24.2"

    @pytest.mark.asyncio
    async def test_resolve_default_without_latest_tag(self, cdn, resolver):
        """Missing latest tag falls back to the configured constant."""
        cdn["metadata"].respond(200, json=registry_payload(tags={"beta": "3.0.0-beta.4"}))

        assert await resolver.resolve_default() == "3.24.2"
        assert resolver.fallback_version == "3.24.2"

    @pytest.mark.asyncio
    async def test_listing_is_cached(self, cdn, resolver, clock):
        """The registry is asked once per cache window."""
        await resolver.list_versions()
        await resolver.list_versions()
        await resolver.resolve_default()

        assert cdn["metadata"].call_count == 1

        clock.now += 60 * 60 * 24 + 1
        await resolver.list_versions()

        assert cdn["metadata"].call_count == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_refetch(self, cdn, resolver):
        await resolver.list_versions()

        resolver.invalidate()
        await resolver.list_versions()

        assert cdn["metadata"].call_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_listing_coalesced(self, cdn, resolver):
        """Concurrent callers share one registry request."""
        first, second = await asyncio.gather(resolver.list_versions(), resolver.list_versions())

        assert first == second
        assert cdn["metadata"].call_count == 1

    @pytest.mark.asyncio
    async def test_network_failure_degrades(self, cdn, resolver):
        """Unreachable registry yields an empty listing, not an error."""
        cdn["metadata"].mock(side_effect=httpx.ConnectError("registry down"))

        assert await resolver.list_versions() == []
        assert resolver.degraded is True
        assert await resolver.tags() == {}
        assert await resolver.resolve_default() == "3.24.2"

    @pytest.mark.asyncio
    async def test_listing_asks_registry_once(self, cdn, resolver):
        """Versions, tags and default come from one request, also while degraded."""
        cdn["metadata"].mock(side_effect=httpx.ConnectError("registry down"))

        listing = await resolver.listing()

        assert listing.versions == []
        assert listing.tags == {}
        assert listing.default == "3.24.2"
        assert listing.degraded is True
        assert cdn["metadata"].call_count == 1

    @pytest.mark.asyncio
    async def test_listing_from_registry(self, cdn, resolver):
        listing = await resolver.listing()

        assert listing.default == "3.24.2"
        assert listing.tags["canary"] == "3.24.3-canary.20250220T012004"
        assert [v.version for v in listing.versions] == [
            v.version for v in await resolver.list_versions()
        ]
        assert listing.degraded is False

    @pytest.mark.asyncio
    async def test_server_error_degrades(self, cdn, resolver):
        """Non-2xx registry answers count as failures."""
        cdn["metadata"].respond(503)

        assert await resolver.list_versions() == []
        assert resolver.degraded is True

    @pytest.mark.asyncio
    async def test_malformed_payload_degrades(self, cdn, resolver):
        """A payload without versions is treated as a failure."""
        cdn["metadata"].respond(200, json={"unexpected": True})

        assert await resolver.list_versions() == []
        assert resolver.degraded is True

    @pytest.mark.asyncio
    async def test_failures_not_cached(self, cdn, resolver):
        """The next call after a failure retries and recovers."""
        cdn["metadata"].mock(side_effect=httpx.ConnectError("registry down"))
        await resolver.list_versions()

        cdn["metadata"].mock(return_value=httpx.Response(200, json=registry_payload()))
        versions = await resolver.list_versions()

        assert len(versions) == 7
        assert resolver.degraded is False
