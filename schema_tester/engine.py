"""
Running a compiled schema against a JSON document.

Steps, each with a fixed outcome on failure:
1. Parse the JSON text (strict: NaN and Infinity are rejected) -> JsonParseError
2. Call the schema's non-throwing parse operation
3. Rejected -> ValidationFailure with the path-qualified issues
4. Accepted -> Success with the schema's canonical output

The library's safe-parse result may be an object exposing `success`,
`data` and `error` attributes or a mapping with the same keys. Issues are
read from `error.issues`, each with `path`, `message` and optional `code`.

Invariants:
    - The schema is never invoked for text that is not JSON
    - Identical (handle, json_text) pairs give equal results
    - validate() reads and writes no state outside its arguments
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from .compiler import SchemaHandle, error_message
from .config import LibraryProfile
from .results import (
    CompileError,
    Issue,
    JsonParseError,
    Success,
    ValidationFailure,
    ValidationResult,
)

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unexpected token {name} in JSON")


def parse_json(text: str) -> Any:
    """Parse JSON text the way browsers do.

    Raises:
        ValueError: If text is not valid JSON
    """
    return json.loads(text, parse_constant=_reject_constant)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _to_issue(raw: Any) -> Issue:
    path = _field(raw, "path") or ()
    code = _field(raw, "code")
    return Issue(
        path=tuple(path),
        message=str(_field(raw, "message") or ""),
        code=str(code) if code is not None else None,
    )


class ValidationEngine:
    """Validates JSON text with a compiled schema."""

    def __init__(self, profile: LibraryProfile | None = None) -> None:
        self._profile = profile or LibraryProfile()

    def validate(self, handle: SchemaHandle, json_text: str) -> ValidationResult:
        """Validate json_text against the schema in handle.

        Returns:
            One of Success, ValidationFailure, CompileError, JsonParseError
        """
        try:
            document = parse_json(json_text)
        except ValueError as e:
            return JsonParseError(error_message(e))

        safe_parse = getattr(handle.schema, self._profile.safe_parse, None)
        if not callable(safe_parse):
            return CompileError(
                f"Schema has no '{self._profile.safe_parse}' operation"
            )

        # User refinements and transforms run inside the library call
        try:
            outcome = safe_parse(document)
        except Exception as e:
            logger.debug(f"Schema raised during {self._profile.safe_parse}: {e!r}")
            return CompileError(error_message(e))

        # Circular or non-JSON output cannot be displayed
        try:
            if _field(outcome, "success"):
                return Success.of(_field(outcome, "data"))

            issues = _field(_field(outcome, "error"), "issues") or ()
            return ValidationFailure.of(tuple(_to_issue(issue) for issue in issues))
        except (TypeError, ValueError) as e:
            logger.debug(f"Schema output could not be displayed: {e!r}")
            return CompileError(error_message(e))
