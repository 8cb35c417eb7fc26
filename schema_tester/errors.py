"""
Error types for Schema Tester.

This module defines the exceptions raised by the pipeline:
- SchemaTesterError: Base exception
- NetworkError: Registry, declaration or CDN fetch failed
- LoadError: A library version could not be loaded
- DecodeError: A shared-state token could not be decoded
- NotReadyError: Validation requested before any library version is active

Compile errors, JSON parse errors and validation failures are not exceptions;
they are ValidationResult variants (see results.py) and are always displayed.

Invariants:
    - All errors inherit from SchemaTesterError
    - Errors include context for debugging
    - Nothing raised here is fatal to the host process
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SchemaTesterError(Exception):
    """Base exception for all Schema Tester errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SCHEMA_TESTER_ERROR"
        self.details = details or {}


class NetworkError(SchemaTesterError):
    """A request to the registry or the CDN failed.

    Raised when:
    - The host is unreachable or the request times out
    - The server answers with a non-2xx status
    - The response body is not what the registry documents
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        code: str = "NETWORK_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            details={"url": url, **(details or {})},
        )
        self.url = url


class LoadError(NetworkError):
    """A library version could not be turned into a module.

    Raised when:
    - The module source cannot be fetched
    - The module source fails to compile or raises while executing
    - A static registry has no entry for the version
    """

    def __init__(
        self,
        message: str,
        version: str,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            url=url,
            code="LOAD_ERROR",
            details={"version": version},
        )
        self.version = version


class DecodeError(SchemaTesterError):
    """A shared-state token is malformed."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="DECODE_ERROR",
            details={"field": field},
        )
        self.field = field


class NotReadyError(SchemaTesterError):
    """No library version has finished loading yet.

    Callers retry once a load completes; nothing is queued.
    """

    def __init__(self, message: str = "No validation library version is loaded yet") -> None:
        super().__init__(message, code="NOT_READY")
