"""
Playground API routes.

Exposes the validation pipeline to the editor front end:
- Version listing and selection
- Type stubs for editor assistance
- Validation of JSON against schema source
- Shareable session links

Every validation outcome, including compile errors and invalid JSON, is a
200 response carrying the display text and an error flag. Non-2xx answers
are reserved for the service not being able to run the pipeline at all.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from schema_tester import LoadError, NotReadyError, Session, ValidationFailure, render
from schema_tester.state import (
    DEFAULT_JSON,
    DEFAULT_RESULT,
    DEFAULT_SCHEMA,
    ShareableState,
    decode,
    encode,
    to_query,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Playground"])


# =============================================================================
# Request/Response Models
# =============================================================================


class VersionListResponse(BaseModel):
    """Versions offered by the registry."""
    versions: list[str]
    latest: str
    tags: dict[str, str] = Field(default_factory=dict)
    degraded: bool = Field(False, description="Registry unreachable; listing is empty")


class VersionStatusResponse(BaseModel):
    """Selected and active library version."""
    version: str | None = Field(None, description="Version of the active module")
    selected: str | None = Field(None, description="Most recently requested version")
    ready: bool
    active: bool | None = Field(None, description="Whether this request's selection took effect")


class SelectVersionRequest(BaseModel):
    """Switch the active library version."""
    version: str | None = Field(None, description="Exact version; omit for the registry default")


class DeclarationsResponse(BaseModel):
    """Type stubs for a version."""
    version: str
    content: str


class ValidateRequest(BaseModel):
    """Validate a JSON document against schema source."""
    schema_text: str = Field(..., alias="schema", description="Schema source expression")
    json_text: str = Field(..., alias="json", description="JSON document text")

    model_config = {"populate_by_name": True}


class IssueModel(BaseModel):
    path: list[str | int]
    message: str
    code: str | None = None


class ValidateResponse(BaseModel):
    """Outcome of a validation."""
    kind: str = Field(..., description="success | validation_failure | compile_error | json_parse_error")
    text: str = Field(..., description="Text to display")
    is_error: bool
    version: str
    issues: list[IssueModel] | None = None


class ShareRequest(BaseModel):
    """Encode a session for sharing."""
    schema_text: str = Field(DEFAULT_SCHEMA, alias="schema")
    json_text: str = Field(DEFAULT_JSON, alias="json")
    result_text: str = Field(DEFAULT_RESULT, alias="result")
    version: str | None = None

    model_config = {"populate_by_name": True}


class ShareResponse(BaseModel):
    """Encoded tokens and the ready-made query string."""
    tokens: dict[str, str]
    query: str


class SessionStateResponse(BaseModel):
    """Decoded session texts."""
    schema_text: str = Field(..., serialization_alias="schema")
    json_text: str = Field(..., serialization_alias="json")
    result_text: str = Field(..., serialization_alias="result")
    version: str | None = None


# =============================================================================
# Dependencies
# =============================================================================


def get_session(request: Request) -> Session:
    """Get the pipeline session from app state."""
    return request.app.state.session


# =============================================================================
# Version Endpoints
# =============================================================================


@router.get("/versions", response_model=VersionListResponse)
async def list_versions(session: Session = Depends(get_session)):
    """List selectable versions and the default one."""
    listing = await session.resolver.listing()
    return VersionListResponse(
        versions=[v.version for v in listing.versions],
        latest=listing.default,
        tags=listing.tags,
        degraded=listing.degraded,
    )


@router.get("/version", response_model=VersionStatusResponse)
async def get_version(session: Session = Depends(get_session)):
    """Currently active version."""
    return VersionStatusResponse(
        version=session.version,
        selected=session.selected_version,
        ready=session.ready,
    )


@router.put("/version", response_model=VersionStatusResponse)
async def select_version(
    request: SelectVersionRequest,
    session: Session = Depends(get_session),
):
    """
    Load a version and make it active.

    Responds once the load completes. When a newer selection completed
    first, `active` is false and the newer version stays active.
    """
    try:
        active = await session.select_version(request.version or None)
    except LoadError as e:
        logger.error(f"Version load failed: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)

    return VersionStatusResponse(
        version=session.version,
        selected=session.selected_version,
        ready=session.ready,
        active=active,
    )


@router.get("/declarations", response_model=DeclarationsResponse)
async def get_declarations(
    version: str | None = None,
    session: Session = Depends(get_session),
):
    """Type stubs for a version (default: the active one, else the registry default)."""
    version = version or session.version or await session.resolver.resolve_default()
    content = await session.loader.load_declarations(version)
    return DeclarationsResponse(version=version, content=content)


# =============================================================================
# Validation
# =============================================================================


@router.post("/validate", response_model=ValidateResponse)
async def validate(
    request: ValidateRequest,
    session: Session = Depends(get_session),
):
    """
    Validate JSON against schema source with the active library version.

    Returns 409 while no version has finished loading; retry after
    PUT /version completes.
    """
    try:
        result = session.validate(request.schema_text, request.json_text)
    except NotReadyError as e:
        raise HTTPException(status_code=409, detail=e.message)

    text, is_error = render(result)
    issues = None
    if isinstance(result, ValidationFailure):
        issues = [
            IssueModel(path=list(issue.path), message=issue.message, code=issue.code)
            for issue in result.issues
        ]
    return ValidateResponse(
        kind=result.kind,
        text=text,
        is_error=is_error,
        version=session.version,
        issues=issues,
    )


# =============================================================================
# Sharing
# =============================================================================


@router.post("/share", response_model=ShareResponse)
async def share(request: ShareRequest):
    """Encode schema, JSON and result into link tokens."""
    state = ShareableState(
        schema_text=request.schema_text,
        json_text=request.json_text,
        result_text=request.result_text,
    )
    return ShareResponse(tokens=encode(state), query=to_query(state, request.version))


@router.get("/share", response_model=SessionStateResponse, response_model_by_alias=True)
async def open_shared(
    schema: str | None = None,
    json: str | None = None,
    result: str | None = None,
    version: str | None = None,
):
    """Decode link tokens; a bad token falls back to that field's default."""
    state = decode({"schema": schema, "json": json, "result": result})
    return SessionStateResponse(
        schema_text=state.schema_text,
        json_text=state.json_text,
        result_text=state.result_text,
        version=version or None,
    )


@router.get("/defaults")
async def defaults() -> dict[str, Any]:
    """Texts a fresh or reset session starts with."""
    return {"schema": DEFAULT_SCHEMA, "json": DEFAULT_JSON, "result": DEFAULT_RESULT}
