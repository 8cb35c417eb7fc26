"""
Schema Tester - Check JSON documents against schemas written for any
published version of a validation library.

The pipeline:
- VersionResolver lists versions from the registry and picks the default
- VersionLoader fetches an exact version's module and declarations, once
- SchemaCompiler evaluates schema source with only the library in scope
- ValidationEngine validates JSON text and returns a ValidationResult
- state encodes the editable texts into shareable tokens

Example:
    >>> import httpx
    >>> from schema_tester import create_session
    >>>
    >>> async with httpx.AsyncClient() as client:
    ...     session = create_session(client)
    ...     await session.select_version()
    ...     result = session.validate('z.object({"key": z.string()})', '{"key": "value"}')
    ...     print(result.text)

Invariants:
    - Loaded modules are cached per version for the life of the process
    - Nothing in the pipeline is fatal to the host process

Version: 1.0.0
"""

__version__ = "1.0.0"

from .compiler import SchemaCompiler, SchemaHandle
from .config import Config, LibraryProfile, RegistryConfig
from .engine import ValidationEngine
from .errors import (
    DecodeError,
    LoadError,
    NetworkError,
    NotReadyError,
    SchemaTesterError,
)
from .loader import (
    HttpModuleLoader,
    LoadedModule,
    ModuleLoader,
    StaticModuleLoader,
    VersionLoader,
)
from .results import (
    CompileError,
    Issue,
    JsonParseError,
    Success,
    ValidationFailure,
    ValidationResult,
    render,
)
from .session import Session, create_session
from .state import ShareableState
from .versions import LibraryVersion, VersionListing, VersionResolver

__all__ = [
    # Version
    "__version__",
    # Configuration
    "Config",
    "RegistryConfig",
    "LibraryProfile",
    # Versions
    "LibraryVersion",
    "VersionListing",
    "VersionResolver",
    # Loading
    "LoadedModule",
    "ModuleLoader",
    "HttpModuleLoader",
    "StaticModuleLoader",
    "VersionLoader",
    # Compiling and validating
    "SchemaCompiler",
    "SchemaHandle",
    "ValidationEngine",
    "ValidationResult",
    "Success",
    "ValidationFailure",
    "CompileError",
    "JsonParseError",
    "Issue",
    "render",
    # Session
    "Session",
    "create_session",
    "ShareableState",
    # Errors
    "SchemaTesterError",
    "NetworkError",
    "LoadError",
    "DecodeError",
    "NotReadyError",
]
