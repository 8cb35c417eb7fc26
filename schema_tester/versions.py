"""
Version discovery for the validation library.

The registry answers `GET <registry>/<library>` with every published
version plus a map of dist-tags (alpha, beta, canary, latest, next).
Raw pre-release builds are hidden from the picker unless a tag points at
them; they stay loadable when a caller names them explicitly.

Invariants:
    - The listing is cached for `cache_ttl` seconds; failures are not cached
    - A failed fetch yields an empty listing and flips `degraded`, never raises
    - Listed version strings are normalized and unique, in registry order
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Mapping, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .coalesce import Coalescer
from .config import RegistryConfig

logger = logging.getLogger(__name__)

KNOWN_TAGS = ("alpha", "beta", "canary", "latest", "next")

_PRERELEASE_RE = re.compile(r"([a-z]+)\..*")
_MAJOR_RE = re.compile(r"^v?(\d+)")


class VersionLinks(BaseModel):
    """Registry links attached to a version."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    self_url: str = Field(default="", alias="self")
    entrypoints: str = ""
    stats: str = ""


class LibraryVersion(BaseModel):
    """One published version of the library."""

    model_config = ConfigDict(frozen=True)

    version: str
    links: VersionLinks = Field(default_factory=VersionLinks)


class RegistryMetadata(BaseModel):
    """Payload of the registry metadata endpoint."""

    versions: list[LibraryVersion]
    tags: dict[str, str] = Field(default_factory=dict)


class VersionListing(BaseModel):
    """Everything a version picker shows, taken from a single registry fetch."""

    model_config = ConfigDict(frozen=True)

    versions: list[LibraryVersion]
    tags: dict[str, str]
    default: str
    degraded: bool


def normalize_version(version: str, tags: Mapping[str, str]) -> str:
    """Collapse a pre-release suffix to its tag name.

    `3.22.0-beta.3` becomes `3.22.0-beta`. A version that is the target of
    some tag is returned untouched.
    """
    if version in tags.values():
        return version
    return _PRERELEASE_RE.sub(r"\1", version, count=1)


def is_listed(version: str, tags: Mapping[str, str]) -> bool:
    """Whether a raw registry version belongs in the general listing."""
    if version in tags.values():
        return True
    return not any(tag in version for tag in tags)


def major_of(version: str) -> int | None:
    """Leading major number of a version string, if it has one."""
    match = _MAJOR_RE.match(version)
    return int(match.group(1)) if match else None


class VersionResolver:
    """Lists library versions and picks the default one.

    Example:
        >>> async with httpx.AsyncClient() as client:
        ...     resolver = VersionResolver(client, RegistryConfig())
        ...     versions = await resolver.list_versions()
        ...     default = await resolver.resolve_default()
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: RegistryConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._config = config
        self._clock = clock
        self._flights: Coalescer[RegistryMetadata | None] = Coalescer("registry")
        self._metadata: RegistryMetadata | None = None
        self._versions: list[LibraryVersion] = []
        self._fetched_at: float | None = None
        self._degraded = False
        self._pinned = False

    @property
    def degraded(self) -> bool:
        """Whether the last registry fetch failed."""
        return self._degraded

    @property
    def fallback_version(self) -> str:
        return self._config.fallback_version

    async def list_versions(self) -> list[LibraryVersion]:
        """Versions offered to the user, newest first as the registry orders them.

        Returns:
            Filtered, normalized versions; empty when the registry is unreachable
        """
        await self._refresh()
        return list(self._versions)

    async def tags(self) -> dict[str, str]:
        """Tag map from the registry; empty when the registry is unreachable."""
        await self._refresh()
        return dict(self._metadata.tags) if self._metadata else {}

    async def listing(self) -> VersionListing:
        """Versions, tags and default from a single refresh.

        Makes at most one registry request, also while degraded.
        """
        await self._refresh()
        return VersionListing(
            versions=list(self._versions),
            tags=dict(self._metadata.tags) if self._metadata else {},
            default=self._default(),
            degraded=self._degraded,
        )

    async def resolve_default(self) -> str:
        """The normalized `latest` version, or the configured fallback."""
        await self._refresh()
        return self._default()

    def _default(self) -> str:
        if self._metadata is not None:
            latest = self._metadata.tags.get("latest")
            if latest:
                return normalize_version(latest, self._metadata.tags)
        logger.warning(
            f"No 'latest' tag available for {self._config.library}, "
            f"using fallback version {self._config.fallback_version}"
        )
        return self._config.fallback_version

    def pin(self, versions: Sequence[str]) -> None:
        """Serve a fixed listing instead of asking the registry.

        The first version is the default. Versions are listed as given.
        """
        versions = list(versions)
        tags = {"latest": versions[0]} if versions else {}
        self._metadata = RegistryMetadata(
            versions=[LibraryVersion(version=v) for v in versions], tags=tags
        )
        self._versions = list(self._metadata.versions)
        self._degraded = False
        self._pinned = True

    def invalidate(self) -> None:
        """Drop the cached listing so the next call refetches."""
        self._fetched_at = None

    def _is_fresh(self) -> bool:
        if self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self._config.cache_ttl

    async def _refresh(self) -> None:
        if self._pinned or self._is_fresh():
            return
        metadata = await self._flights.run("metadata", self._fetch)
        if metadata is None:
            self._degraded = True
            self._metadata = None
            self._versions = []
            return
        self._degraded = False
        self._metadata = metadata
        self._versions = self._filter(metadata)
        self._fetched_at = self._clock()
        logger.debug(f"Registry listed {len(self._versions)} versions of {self._config.library}")

    async def _fetch(self) -> RegistryMetadata | None:
        url = self._config.metadata_url
        try:
            response = await self._client.get(url, timeout=self._config.timeout)
            response.raise_for_status()
            return RegistryMetadata.model_validate(response.json())
        except httpx.HTTPError as e:
            logger.warning(f"Registry fetch failed for {url}: {e}")
        except (ValueError, ValidationError) as e:
            logger.warning(f"Registry returned malformed metadata for {url}: {e}")
        return None

    def _filter(self, metadata: RegistryMetadata) -> list[LibraryVersion]:
        tags = metadata.tags
        seen: set[str] = set()
        result: list[LibraryVersion] = []
        for entry in metadata.versions:
            if not is_listed(entry.version, tags):
                continue
            if self._config.min_major is not None:
                major = major_of(entry.version)
                if major is None or major < self._config.min_major:
                    continue
            normalized = normalize_version(entry.version, tags)
            if normalized in seen:
                continue
            seen.add(normalized)
            result.append(LibraryVersion(version=normalized, links=entry.links))
        return result
