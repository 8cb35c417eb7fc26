"""
One user's working session: the selected library version and the active schema.

Switching versions is asynchronous. The previously active module keeps
serving validations until the new one has loaded, and then the reference
is swapped in a single assignment. When selections overlap, the selection
that *finishes* last among the newest wins: a load completing after a newer
selection already took effect is discarded (the loader still caches it).

Invariants:
    - validate() never waits for a load; with nothing active it raises NotReadyError
    - Exactly one SchemaHandle is active at a time
    - last_result always belongs to the latest validate() call
"""

from __future__ import annotations

import itertools
import logging

import httpx

from .compiler import SchemaCompiler, SchemaHandle
from .config import Config
from .engine import ValidationEngine
from .errors import NotReadyError
from .loader import (
    HttpModuleLoader,
    LoadedModule,
    ModuleLoader,
    StaticModuleLoader,
    VersionLoader,
)
from .results import ValidationResult
from .versions import VersionResolver

logger = logging.getLogger(__name__)


class Session:
    """Ties resolver, loader, compiler and engine together for one user.

    Example:
        >>> session = Session(resolver, loader, SchemaCompiler(), ValidationEngine())
        >>> await session.select_version(None)  # latest
        >>> result = session.validate('z.object({"key": z.string()})', '{"key": "value"}')
    """

    def __init__(
        self,
        resolver: VersionResolver,
        loader: VersionLoader,
        compiler: SchemaCompiler,
        engine: ValidationEngine,
    ) -> None:
        self.resolver = resolver
        self.loader = loader
        self.compiler = compiler
        self.engine = engine
        self._sequence = itertools.count(1)
        self._selected: str | None = None
        self._active: LoadedModule | None = None
        self._active_sequence = 0
        self._latest_sequence = 0
        self._handle: SchemaHandle | None = None
        self._last_result: ValidationResult | None = None

    @property
    def selected_version(self) -> str | None:
        """Most recently requested version, loaded or not."""
        return self._selected

    @property
    def version(self) -> str | None:
        """Version of the active module."""
        return self._active.version if self._active else None

    @property
    def ready(self) -> bool:
        return self._active is not None

    @property
    def active_module(self) -> LoadedModule | None:
        return self._active

    @property
    def active_handle(self) -> SchemaHandle | None:
        return self._handle

    @property
    def last_result(self) -> ValidationResult | None:
        return self._last_result

    async def select_version(self, version: str | None = None) -> bool:
        """Load a version and make it active unless superseded.

        Args:
            version: Exact version, or None for the registry default

        Returns:
            Whether this selection became the active module

        Raises:
            LoadError: If the version cannot be loaded; the active module is kept
        """
        sequence = next(self._sequence)
        self._latest_sequence = sequence
        if version is None:
            version = await self.resolver.resolve_default()
        if sequence == self._latest_sequence:
            self._selected = version

        module = await self.loader.load(version)

        if sequence < self._active_sequence:
            logger.info(
                f"Discarding load of {version}: a newer selection "
                f"({self.version}) is already active"
            )
            return False

        previous = self.version
        self._active = module
        self._active_sequence = sequence
        if previous != version:
            self._handle = None
            logger.info(f"Active library version: {previous} -> {version}")
        return True

    def validate(self, schema_text: str, json_text: str) -> ValidationResult:
        """Compile schema_text against the active module and validate json_text.

        Raises:
            NotReadyError: If no version has finished loading
        """
        module = self._active
        if module is None:
            raise NotReadyError()

        compiled = self.compiler.compile(schema_text, module)
        if isinstance(compiled, SchemaHandle):
            self._handle = compiled
            result = self.engine.validate(compiled, json_text)
        else:
            self._handle = None
            result = compiled

        self._last_result = result
        return result


def create_session(
    client: httpx.AsyncClient,
    config: Config | None = None,
    module_loader: ModuleLoader | None = None,
) -> Session:
    """Build a session for config.

    Modules come from module_loader when given, else from the installed
    modules named in config.registry.modules, else from the CDN. With
    installed modules the version listing is pinned to them and no
    declarations are fetched.
    """
    config = config or Config()
    registry = config.registry
    resolver = VersionResolver(client, registry)
    declaration_paths: dict[int, tuple[str, ...]] | None = None

    if module_loader is None and registry.modules:
        static = StaticModuleLoader(dict(registry.modules))
        resolver.pin(static.versions())
        module_loader = static
        declaration_paths = {}
    elif module_loader is None:
        module_loader = HttpModuleLoader(client, registry)

    return Session(
        resolver=resolver,
        loader=VersionLoader(module_loader, client, registry, declaration_paths),
        compiler=SchemaCompiler(config.profile),
        engine=ValidationEngine(config.profile),
    )
