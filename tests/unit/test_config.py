"""
Unit tests for configuration.

Tests cover:
- Defaults
- Loading from environment variables
- Validation errors
- Root logger setup
"""

import logging

import json_log_formatter
import pytest

from schema_tester.config import (
    DEFAULT_FALLBACK_VERSION,
    Config,
    LibraryProfile,
    RegistryConfig,
    parse_modules,
)
from schema_tester.logs import TEXT_FORMAT, setup_logging


class TestRegistryConfig:
    """Tests for RegistryConfig."""

    def test_defaults(self):
        config = RegistryConfig()

        assert config.library == "zod"
        assert config.fallback_version == DEFAULT_FALLBACK_VERSION == "3.24.2"
        assert config.cache_ttl == 86400
        assert config.min_major is None

    def test_urls(self):
        config = RegistryConfig(registry_url="https://r.test/npm/", cdn_url="https://c.test/npm/")

        assert config.metadata_url == "https://r.test/npm/zod"
        assert config.file_url("3.24.2", "/lib/index.pyi") == "https://c.test/npm/zod@3.24.2/lib/index.pyi"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCHEMA_TESTER_LIBRARY", "valibot")
        monkeypatch.setenv("SCHEMA_TESTER_CACHE_TTL", "60")
        monkeypatch.setenv("SCHEMA_TESTER_MIN_MAJOR", "3")

        config = RegistryConfig.from_env()

        assert config.library == "valibot"
        assert config.cache_ttl == 60.0
        assert config.min_major == 3

    def test_modules_from_env(self, monkeypatch):
        monkeypatch.setenv("SCHEMA_TESTER_MODULES", "3.24.2=vendor.zod_3_24_2, 3.23.8=vendor.zod_3_23_8")

        assert RegistryConfig.from_env().modules == (
            ("3.24.2", "vendor.zod_3_24_2"),
            ("3.23.8", "vendor.zod_3_23_8"),
        )

    def test_no_modules_by_default(self):
        assert RegistryConfig().modules == ()
        assert parse_modules("") == ()

    @pytest.mark.parametrize("text", ["3.24.2", "=vendor.zod", "3.24.2="])
    def test_malformed_modules(self, text):
        with pytest.raises(ValueError, match="version=module"):
            parse_modules(text)


class TestLibraryProfile:
    """Tests for LibraryProfile."""

    def test_aliases_from_env(self, monkeypatch):
        monkeypatch.setenv("SCHEMA_TESTER_ALIASES", " v , valibot ,")

        assert LibraryProfile.from_env().aliases == ("v", "valibot")


class TestConfig:
    """Tests for Config validation."""

    def test_from_env_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = Config.from_env()

        assert config.log_level == "INFO"
        assert config.profile.aliases == ("z", "zod")

    def test_empty_library(self):
        with pytest.raises(ValueError, match="LIBRARY"):
            Config(registry=RegistryConfig(library="")).validate()

    def test_no_aliases(self):
        with pytest.raises(ValueError, match="at least one alias"):
            Config(profile=LibraryProfile(aliases=())).validate()

    def test_bad_alias(self):
        with pytest.raises(ValueError, match="not a valid identifier"):
            Config(profile=LibraryProfile(aliases=("z", "1z"))).validate()

    def test_negative_ttl(self):
        with pytest.raises(ValueError, match="CACHE_TTL"):
            Config(registry=RegistryConfig(cache_ttl=-1)).validate()

    def test_bad_log_format(self):
        with pytest.raises(ValueError, match="LOG_FORMAT"):
            Config(log_format="xml").validate()


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def root_handlers(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_text_format(self):
        setup_logging(Config(log_level="debug"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.handlers[0].formatter._fmt == TEXT_FORMAT

    def test_json_format(self):
        setup_logging(Config(log_format="json"), level="WARNING")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)
