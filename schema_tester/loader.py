"""
Loading exact versions of the validation library.

A release of the library is a single self-contained Python module on the
CDN. Loading a version fetches that source and executes it into a fresh
module namespace named `<library>@<version>`. The namespace is never put
in `sys.modules`, so versions cannot leak state into each other.

Invariants:
    - At most one LoadedModule per version, kept until process end
    - Concurrent loads of one version share a single fetch
    - A failed load raises LoadError and leaves every cache entry untouched
    - Declaration lookups never raise; a miss is the empty string
"""

from __future__ import annotations

import importlib
import logging
import types
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import httpx

from .coalesce import Coalescer
from .config import RegistryConfig
from .errors import LoadError
from .versions import major_of

logger = logging.getLogger(__name__)

# The stub layout moved between majors; candidates are tried in order.
DECLARATION_PATHS: dict[int, tuple[str, ...]] = {
    1: ("index.pyi",),
    2: ("index.pyi", "lib/index.pyi"),
    3: ("lib/index.pyi", "index.pyi"),
    4: ("index.pyi", "v4/index.pyi", "v4/classic/index.pyi"),
}


@dataclass(frozen=True)
class LoadedModule:
    """A library version ready for compiling schemas.

    Attributes:
        version: Exact version string the module was loaded for
        namespace: The executed module
        origin: Where the module came from (URL or import name)
    """

    version: str
    namespace: types.ModuleType
    origin: str = ""


class ModuleLoader(Protocol):
    """Capability turning a version string into a LoadedModule."""

    async def resolve(self, version: str) -> LoadedModule:
        """Load the module for version.

        Raises:
            LoadError: If the version cannot be loaded
        """
        ...


class HttpModuleLoader:
    """Fetches module source from the CDN and executes it."""

    def __init__(self, client: httpx.AsyncClient, config: RegistryConfig) -> None:
        self._client = client
        self._config = config

    async def resolve(self, version: str) -> LoadedModule:
        url = self._config.file_url(version, self._config.module_path)
        try:
            response = await self._client.get(url, timeout=self._config.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise LoadError(
                f"Failed to fetch {self._config.library}@{version}: {e}",
                version=version,
                url=url,
            ) from e
        return self._instantiate(version, url, response.text)

    def _instantiate(self, version: str, url: str, source: str) -> LoadedModule:
        name = f"{self._config.library}@{version}"
        module = types.ModuleType(name)
        module.__file__ = url
        try:
            code = compile(source, url, "exec", dont_inherit=True)
            exec(code, module.__dict__)
        except Exception as e:
            raise LoadError(
                f"Failed to initialise {name}: {e}",
                version=version,
                url=url,
            ) from e
        return LoadedModule(version=version, namespace=module, origin=url)


class StaticModuleLoader:
    """A compiled-in, finite registry of library versions.

    Values are modules or importable module names.

    Example:
        >>> loader = StaticModuleLoader({"3.24.2": "vendor_zod_3_24_2"})
    """

    def __init__(self, modules: Mapping[str, types.ModuleType | str]) -> None:
        self._modules = dict(modules)

    def versions(self) -> list[str]:
        return list(self._modules)

    async def resolve(self, version: str) -> LoadedModule:
        entry = self._modules.get(version)
        if entry is None:
            raise LoadError(f"Version {version} is not available", version=version)
        if isinstance(entry, str):
            try:
                module = importlib.import_module(entry)
            except ImportError as e:
                raise LoadError(f"Failed to import {entry}: {e}", version=version) from e
            return LoadedModule(version=version, namespace=module, origin=entry)
        return LoadedModule(version=version, namespace=entry, origin=entry.__name__)


class VersionLoader:
    """Per-version cache of loaded modules and declaration text.

    Example:
        >>> loader = VersionLoader(HttpModuleLoader(client, config), client, config)
        >>> module = await loader.load("3.24.2")
        >>> stubs = await loader.load_declarations("3.24.2")
    """

    def __init__(
        self,
        module_loader: ModuleLoader,
        client: httpx.AsyncClient,
        config: RegistryConfig,
        declaration_paths: Mapping[int, tuple[str, ...]] | None = None,
    ) -> None:
        self._module_loader = module_loader
        self._client = client
        self._config = config
        self._declaration_paths = dict(
            DECLARATION_PATHS if declaration_paths is None else declaration_paths
        )
        self._modules: dict[str, LoadedModule] = {}
        self._declarations: dict[str, str] = {}
        self._module_flights: Coalescer[LoadedModule] = Coalescer("module")
        self._declaration_flights: Coalescer[str] = Coalescer("declarations")

    def is_loaded(self, version: str) -> bool:
        return version in self._modules

    def cached_versions(self) -> list[str]:
        """Versions with a loaded module, in load order."""
        return list(self._modules)

    async def load(self, version: str) -> LoadedModule:
        """Return the module for exactly this version.

        Raises:
            LoadError: If the module cannot be fetched or executed
        """
        cached = self._modules.get(version)
        if cached is not None:
            logger.debug(f"Module cache hit for {version}")
            return cached
        return await self._module_flights.run(version, lambda: self._load(version))

    async def _load(self, version: str) -> LoadedModule:
        module = await self._module_loader.resolve(version)
        # Write-once: a racing writer for the same key keeps the first entry
        module = self._modules.setdefault(version, module)
        logger.info(f"Loaded {self._config.library}@{version} from {module.origin}")
        return module

    def candidate_paths(self, version: str) -> tuple[str, ...]:
        """Declaration paths worth trying for a version."""
        major = major_of(version)
        if major is None:
            return ()
        return self._declaration_paths.get(major, ())

    async def load_declarations(self, version: str) -> str:
        """Type-stub text for editor assistance; empty string on any miss."""
        cached = self._declarations.get(version)
        if cached is not None:
            return cached
        return await self._declaration_flights.run(
            version, lambda: self._load_declarations(version)
        )

    async def _load_declarations(self, version: str) -> str:
        paths = self.candidate_paths(version)
        if not paths:
            logger.warning(f"No declaration layout known for version {version}")
            self._declarations[version] = ""
            return ""

        transport_failed = False
        for path in paths:
            url = self._config.file_url(version, path)
            try:
                response = await self._client.get(url, timeout=self._config.timeout)
            except httpx.HTTPError as e:
                logger.warning(f"Declaration fetch failed for {url}: {e}")
                transport_failed = True
                continue
            if response.is_success:
                self._declarations[version] = response.text
                return response.text
            logger.debug(f"No declarations at {url} ({response.status_code})")

        logger.warning(f"No declarations found for {self._config.library}@{version}")
        if not transport_failed:
            self._declarations[version] = ""
        return ""
