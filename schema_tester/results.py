"""
Validation results.

A ValidationResult is exactly one of four variants:
- Success: the schema accepted the document; `value` is its canonical output
- ValidationFailure: the schema rejected the document; `issues` say where and why
- CompileError: the schema source could not be turned into a schema
- JsonParseError: the document is not JSON

Every variant carries the text to display and whether it is an error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Union


def to_pretty_json(value: Any) -> str:
    """Serialize the way results are displayed: 4-space indent, unicode kept."""
    return json.dumps(value, indent=4, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class Issue:
    """One validation problem.

    Attributes:
        path: Keys and indexes leading to the offending value
        message: Human-readable explanation
        code: Library-specific issue code, when the library gives one
    """

    path: tuple[str | int, ...]
    message: str
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.code is not None:
            data["code"] = self.code
        data["path"] = list(self.path)
        data["message"] = self.message
        return data


@dataclass(frozen=True)
class Success:
    value: Any
    text: str

    kind: ClassVar[str] = "success"
    is_error: ClassVar[bool] = False

    @classmethod
    def of(cls, value: Any) -> Success:
        return cls(value=value, text=to_pretty_json(value))


@dataclass(frozen=True)
class ValidationFailure:
    issues: tuple[Issue, ...]
    text: str

    kind: ClassVar[str] = "validation_failure"
    is_error: ClassVar[bool] = True

    @classmethod
    def of(cls, issues: tuple[Issue, ...]) -> ValidationFailure:
        return cls(issues=issues, text=to_pretty_json([issue.to_dict() for issue in issues]))


@dataclass(frozen=True)
class CompileError:
    message: str

    kind: ClassVar[str] = "compile_error"
    is_error: ClassVar[bool] = True

    @property
    def text(self) -> str:
        return self.message


@dataclass(frozen=True)
class JsonParseError:
    message: str

    kind: ClassVar[str] = "json_parse_error"
    is_error: ClassVar[bool] = True

    @property
    def text(self) -> str:
        return self.message


ValidationResult = Union[Success, ValidationFailure, CompileError, JsonParseError]


def render(result: ValidationResult) -> tuple[str, bool]:
    """Display text and error flag for a result.

    Raises:
        TypeError: If result is not one of the four variants
    """
    if isinstance(result, Success):
        return result.text, False
    if isinstance(result, ValidationFailure):
        return result.text, True
    if isinstance(result, CompileError):
        return result.message, True
    if isinstance(result, JsonParseError):
        return result.message, True
    raise TypeError(f"Unknown validation result: {type(result).__name__}")
