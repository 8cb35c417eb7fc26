"""
Compiling user schema source against a loaded library version.

The source is a single Python expression such as::

    z.object({"key": z.string()})

It is evaluated with nothing in scope but the library module, bound under
the profile's aliases, and an empty `__builtins__`. This keeps the
evaluation surface small and identical across versions. It is not a
sandbox: the expression still runs with the privileges of the process.

Invariants:
    - Every exception raised while compiling or evaluating becomes a CompileError
    - A value only passes the type check against the base class of the
      module it was compiled with
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .config import LibraryProfile
from .loader import LoadedModule
from .results import CompileError

logger = logging.getLogger(__name__)

NOT_A_SCHEMA_MESSAGE = "Input is not an instance of the validation library's schema type"
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


@dataclass(frozen=True)
class SchemaHandle:
    """A compiled schema bound to the module that built it."""

    schema: Any
    module: LoadedModule

    @property
    def version(self) -> str:
        return self.module.version


def normalize_source(source: str) -> str:
    """Strip whitespace and one trailing statement terminator."""
    source = source.strip()
    if source.endswith(";"):
        source = source[:-1]
    return source


def error_message(error: BaseException) -> str:
    return str(error) or UNKNOWN_ERROR_MESSAGE


class SchemaCompiler:
    """Turns schema source into a SchemaHandle."""

    def __init__(self, profile: LibraryProfile | None = None) -> None:
        self._profile = profile or LibraryProfile()

    @property
    def profile(self) -> LibraryProfile:
        return self._profile

    def scope(self, module: LoadedModule) -> dict[str, Any]:
        """The only names visible to schema source."""
        scope: dict[str, Any] = {"__builtins__": {}}
        for alias in self._profile.aliases:
            scope[alias] = module.namespace
        return scope

    def evaluate(self, source: str, module: LoadedModule) -> Any:
        """Evaluate source as one expression.

        Raises:
            Exception: Whatever compiling or evaluating the source raises
        """
        code = compile(normalize_source(source), "<schema>", "eval", dont_inherit=True)
        return eval(code, self.scope(module))

    def typecheck(self, value: Any, module: LoadedModule) -> CompileError | None:
        """Check value is a schema of this module's own base type."""
        base = getattr(module.namespace, self._profile.base_type, None)
        if isinstance(base, type) and isinstance(value, base):
            return None
        return CompileError(NOT_A_SCHEMA_MESSAGE)

    def compile(self, source: str, module: LoadedModule) -> SchemaHandle | CompileError:
        """Compile and type check schema source.

        Returns:
            SchemaHandle on success, CompileError carrying the exception message otherwise
        """
        try:
            value = self.evaluate(source, module)
        except Exception as e:
            logger.debug(f"Schema source failed to evaluate against {module.version}: {e!r}")
            return CompileError(error_message(e))

        error = self.typecheck(value, module)
        if error is not None:
            return error
        return SchemaHandle(schema=value, module=module)
