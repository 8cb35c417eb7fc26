"""
Configuration management for Schema Tester.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local use
    - The fallback version is only used when the registry has no `latest` tag

How to change safely:
    - Add new settings with defaults that keep existing deployments working
    - Changing the library profile changes how user source is evaluated;
      existing shared links may stop compiling
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_VERSION = "3.24.2"


def parse_modules(text: str) -> tuple[tuple[str, str], ...]:
    """Parse `3.24.2=vendor.zod_3_24_2,3.23.8=vendor.zod_3_23_8`.

    Raises:
        ValueError: If an entry is not `version=module`
    """
    modules = []
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        version, sep, name = entry.partition("=")
        if not sep or not version.strip() or not name.strip():
            raise ValueError(f"SCHEMA_TESTER_MODULES entry '{entry}' is not version=module")
        modules.append((version.strip(), name.strip()))
    return tuple(modules)


@dataclass(frozen=True)
class RegistryConfig:
    """Where library versions, modules and declarations come from.

    Attributes:
        registry_url: Base URL of the package metadata API
        cdn_url: Base URL of the file CDN
        library: Package name on the registry and the CDN
        module_path: Path of the single-file Python module inside a release
        fallback_version: Version used when the registry cannot name `latest`
        cache_ttl: Seconds the version listing stays fresh
        min_major: Oldest major version compatible with the evaluation model
        timeout: HTTP timeout in seconds
        modules: Installed modules as (version, import name) pairs; when set,
            versions come from this list instead of the registry and CDN
    """

    registry_url: str = "https://data.jsdelivr.com/v1/packages/npm"
    cdn_url: str = "https://cdn.jsdelivr.net/npm"
    library: str = "zod"
    module_path: str = "index.py"
    fallback_version: str = DEFAULT_FALLBACK_VERSION
    cache_ttl: float = 60 * 60 * 24
    min_major: int | None = None
    timeout: float = 10.0
    modules: tuple[tuple[str, str], ...] = ()

    @property
    def metadata_url(self) -> str:
        return f"{self.registry_url.rstrip('/')}/{self.library}"

    def file_url(self, version: str, path: str) -> str:
        """URL of a file inside one exact release on the CDN."""
        return f"{self.cdn_url.rstrip('/')}/{self.library}@{version}/{path.lstrip('/')}"

    @classmethod
    def from_env(cls) -> RegistryConfig:
        """Load configuration from environment variables."""
        min_major = os.getenv("SCHEMA_TESTER_MIN_MAJOR")
        return cls(
            registry_url=os.getenv(
                "SCHEMA_TESTER_REGISTRY_URL", "https://data.jsdelivr.com/v1/packages/npm"
            ),
            cdn_url=os.getenv("SCHEMA_TESTER_CDN_URL", "https://cdn.jsdelivr.net/npm"),
            library=os.getenv("SCHEMA_TESTER_LIBRARY", "zod"),
            module_path=os.getenv("SCHEMA_TESTER_MODULE_PATH", "index.py"),
            fallback_version=os.getenv("SCHEMA_TESTER_FALLBACK_VERSION", DEFAULT_FALLBACK_VERSION),
            cache_ttl=float(os.getenv("SCHEMA_TESTER_CACHE_TTL", str(60 * 60 * 24))),
            min_major=int(min_major) if min_major else None,
            timeout=float(os.getenv("SCHEMA_TESTER_HTTP_TIMEOUT", "10")),
            modules=parse_modules(os.getenv("SCHEMA_TESTER_MODULES", "")),
        )


@dataclass(frozen=True)
class LibraryProfile:
    """How the validation library is exposed to and called by user source.

    Attributes:
        aliases: Names the module is bound to when evaluating schema source
        base_type: Attribute of the module holding the base schema class
        safe_parse: Name of the schema method that validates without raising
    """

    aliases: tuple[str, ...] = ("z", "zod")
    base_type: str = "ZodType"
    safe_parse: str = "safe_parse"

    @classmethod
    def from_env(cls) -> LibraryProfile:
        """Load configuration from environment variables."""
        aliases = os.getenv("SCHEMA_TESTER_ALIASES", "z,zod")
        return cls(
            aliases=tuple(a.strip() for a in aliases.split(",") if a.strip()),
            base_type=os.getenv("SCHEMA_TESTER_BASE_TYPE", "ZodType"),
            safe_parse=os.getenv("SCHEMA_TESTER_SAFE_PARSE", "safe_parse"),
        )


@dataclass(frozen=True)
class Config:
    """Complete configuration.

    Attributes:
        registry: Registry and CDN configuration
        profile: Library profile
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log output format (text or json)
    """

    registry: RegistryConfig = field(default_factory=RegistryConfig)
    profile: LibraryProfile = field(default_factory=LibraryProfile)
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> Config:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is invalid.
        """
        config = cls(
            registry=RegistryConfig.from_env(),
            profile=LibraryProfile.from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.registry.library:
            raise ValueError("SCHEMA_TESTER_LIBRARY must not be empty")
        if not self.profile.aliases:
            raise ValueError("SCHEMA_TESTER_ALIASES must name at least one alias")
        for alias in self.profile.aliases:
            if not alias.isidentifier():
                raise ValueError(f"Alias '{alias}' is not a valid identifier")
        if self.registry.cache_ttl < 0:
            raise ValueError("SCHEMA_TESTER_CACHE_TTL must not be negative")
        if self.log_format not in ("text", "json"):
            raise ValueError(f"LOG_FORMAT must be text or json, got '{self.log_format}'")

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Schema tester configuration loaded",
            extra={
                "registry_url": self.registry.registry_url,
                "cdn_url": self.registry.cdn_url,
                "library": self.registry.library,
                "fallback_version": self.registry.fallback_version,
                "aliases": ",".join(self.profile.aliases),
                "modules": ",".join(f"{v}={m}" for v, m in self.registry.modules),
                "log_level": self.log_level,
                "log_format": self.log_format,
            },
        )
