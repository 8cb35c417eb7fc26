"""
Shareable session state.

The three editable texts (schema, JSON, result) are each gzip-compressed
and URL-safe base64 encoded into their own token, so a link carries the
whole session. A corrupt token only loses its own field, which falls back
to the default text.

Invariants:
    - decode_text(encode_text(s)) == s for any text s
    - encode(decode(encode(state))) == encode(state)
    - Tokens are deterministic: gzip mtime is pinned to zero
    - decode() never raises
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
import zlib
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode

from .errors import DecodeError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = 'z.object({\n    "key": z.string()\n})'
DEFAULT_JSON = '{\n    "key": "value"\n}'
DEFAULT_RESULT = ""

FIELDS = ("schema", "json", "result")


@dataclass(frozen=True)
class ShareableState:
    """The editable texts of one session."""

    schema_text: str = DEFAULT_SCHEMA
    json_text: str = DEFAULT_JSON
    result_text: str = DEFAULT_RESULT


DEFAULTS = {
    "schema": DEFAULT_SCHEMA,
    "json": DEFAULT_JSON,
    "result": DEFAULT_RESULT,
}


def encode_text(text: str) -> str:
    """Compress text into a URL-safe token."""
    compressed = gzip.compress(text.encode("utf-8"), mtime=0)
    return base64.urlsafe_b64encode(compressed).decode("ascii").rstrip("=")


def decode_text(token: str, field: str | None = None) -> str:
    """Inverse of encode_text.

    Raises:
        DecodeError: If the token is not a valid encoded text
    """
    padded = token + "=" * (-len(token) % 4)
    try:
        compressed = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
        if not compressed:
            raise ValueError("empty token")
        return gzip.decompress(compressed).decode("utf-8")
    except (binascii.Error, OSError, EOFError, zlib.error, UnicodeError, ValueError) as e:
        raise DecodeError(f"Malformed state token: {e}", field=field) from e


def encode(state: ShareableState) -> dict[str, str]:
    """Encode each field of state into its own token."""
    return {
        "schema": encode_text(state.schema_text),
        "json": encode_text(state.json_text),
        "result": encode_text(state.result_text),
    }


def decode(tokens: Mapping[str, str | None]) -> ShareableState:
    """Decode tokens, falling back to the default for any bad or missing field."""
    values: dict[str, str] = {}
    for field in FIELDS:
        token = tokens.get(field)
        if token is None:
            values[field] = DEFAULTS[field]
            continue
        try:
            values[field] = decode_text(token, field=field)
        except DecodeError as e:
            logger.debug(f"Using default {field} text: {e.message}")
            values[field] = DEFAULTS[field]
    return ShareableState(
        schema_text=values["schema"],
        json_text=values["json"],
        result_text=values["result"],
    )


def to_query(state: ShareableState, version: str | None = None) -> str:
    """Query string carrying state; version travels raw."""
    params = encode(state)
    if version:
        params["version"] = version
    return urlencode(params)


def from_query(query: str) -> tuple[ShareableState, str | None]:
    """Parse a query string produced by to_query.

    Returns:
        Tuple of (state, version or None)
    """
    params = dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))
    version = params.get("version") or None
    return decode(params), version
