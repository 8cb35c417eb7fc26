"""
Shared fixtures for unit and integration tests.
"""

from collections.abc import AsyncGenerator, Generator

import httpx
import pytest
import pytest_asyncio
import respx

from schema_tester import (
    Config,
    LibraryProfile,
    LoadedModule,
    RegistryConfig,
    SchemaCompiler,
    ValidationEngine,
)

from .support import (
    CDN_URL,
    PUBLISHED,
    REGISTRY_URL,
    make_module,
    module_source,
    module_url,
    registry_payload,
)


@pytest.fixture
def registry_config() -> RegistryConfig:
    return RegistryConfig(registry_url=REGISTRY_URL, cdn_url=CDN_URL, library="zod")


@pytest.fixture
def config(registry_config) -> Config:
    return Config(registry=registry_config, profile=LibraryProfile())


@pytest.fixture
def cdn() -> Generator[respx.MockRouter, None, None]:
    """Registry and CDN answering for every published version.

    Routes are named "metadata" and "module:<version>".
    """
    with respx.mock(assert_all_called=False) as router:
        router.get(f"{REGISTRY_URL}/zod", name="metadata").respond(200, json=registry_payload())
        for version in PUBLISHED:
            router.get(module_url(version), name=f"module:{version}").respond(
                200, text=module_source(version)
            )
        yield router


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as http:
        yield http


@pytest.fixture
def module() -> LoadedModule:
    return make_module("3.24.2")


@pytest.fixture
def compiler() -> SchemaCompiler:
    return SchemaCompiler()


@pytest.fixture
def engine() -> ValidationEngine:
    return ValidationEngine()
