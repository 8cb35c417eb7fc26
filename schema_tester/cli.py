"""
Command line front end for Schema Tester.

Commands:
- validate: Check a JSON file against schema source for one library version
- versions: List library versions offered by the registry
- declarations: Print the type stubs of a version
- share: Print a query string carrying schema, JSON and result
- open: Decode a shared query string

Usage:
    schema-tester validate --schema schema.py --json doc.json
    schema-tester validate --schema - --json doc.json --version 3.23.8
    schema-tester versions
    schema-tester share --schema schema.py --json doc.json --version 3.24.2
    schema-tester open "schema=H4sI...&json=H4sI...&version=3.24.2"

Invariants:
    - validate exits 0 on success, 1 on an error result, 2 when the library cannot load
    - Results are printed exactly as they are displayed elsewhere
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import httpx

from .config import Config
from .errors import LoadError
from .logs import setup_logging
from .results import ValidationResult, render
from .session import Session, create_session
from .state import ShareableState, from_query, to_query
from .versions import VersionListing

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_LOAD_FAILED = 2


def _read(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


class SchemaTesterCLI:
    """CLI commands over a Session.

    Example:
        >>> cli = SchemaTesterCLI(session)
        >>> result = await cli.validate(schema_text, json_text, "3.24.2")
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    async def validate(
        self,
        schema_text: str,
        json_text: str,
        version: str | None = None,
    ) -> ValidationResult:
        """Load the version and validate.

        Raises:
            LoadError: If the version cannot be loaded
        """
        await self.session.select_version(version)
        return self.session.validate(schema_text, json_text)

    async def versions(self) -> VersionListing:
        """Listed versions, tags and the default one."""
        return await self.session.resolver.listing()

    async def declarations(self, version: str | None = None) -> str:
        if version is None:
            version = await self.session.resolver.resolve_default()
        return await self.session.loader.load_declarations(version)


async def _run(args: argparse.Namespace, config: Config) -> int:
    async with httpx.AsyncClient(follow_redirects=True) as client:
        cli = SchemaTesterCLI(create_session(client, config))

        if args.command == "validate":
            schema_text = _read(args.schema)
            json_text = _read(args.json)
            try:
                result = await cli.validate(schema_text, json_text, args.version)
            except LoadError as e:
                print(f"Could not load library: {e.message}", file=sys.stderr)
                return EXIT_LOAD_FAILED
            text, is_error = render(result)
            logger.debug(f"Validated with {cli.session.version}: {result.kind}")
            if args.format == "json":
                print(json.dumps({"kind": result.kind, "is_error": is_error, "text": text}, indent=2))
            else:
                print(text)
            return EXIT_INVALID if is_error else EXIT_OK

        if args.command == "versions":
            listing = await cli.versions()
            listed, default = [v.version for v in listing.versions], listing.default
            if listing.degraded:
                print("Registry unavailable; only explicit versions can be used", file=sys.stderr)
            for version in listed:
                marker = " (latest)" if version == default else ""
                print(f"{version}{marker}")
            if not listed:
                print(f"default: {default}")
            return EXIT_OK

        if args.command == "declarations":
            print(await cli.declarations(args.version))
            return EXIT_OK

    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Validate JSON against library schemas")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a JSON document")
    validate_parser.add_argument("--schema", "-s", required=True, help="Schema source file ('-' for stdin)")
    validate_parser.add_argument("--json", "-j", required=True, help="JSON document file")
    validate_parser.add_argument("--version", "-v", help="Library version (default: latest)")
    validate_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )

    # versions command
    subparsers.add_parser("versions", help="List available library versions")

    # declarations command
    declarations_parser = subparsers.add_parser("declarations", help="Print type stubs of a version")
    declarations_parser.add_argument("--version", "-v", help="Library version (default: latest)")

    # share command
    share_parser = subparsers.add_parser("share", help="Encode a session into a query string")
    share_parser.add_argument("--schema", "-s", required=True, help="Schema source file")
    share_parser.add_argument("--json", "-j", required=True, help="JSON document file")
    share_parser.add_argument("--result", "-r", help="Result text file")
    share_parser.add_argument("--version", "-v", help="Library version")

    # open command
    open_parser = subparsers.add_parser("open", help="Decode a shared query string")
    open_parser.add_argument("query", help="Query string produced by 'share'")

    args = parser.parse_args(argv)

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(EXIT_LOAD_FAILED)

    setup_logging(config, args.log_level)

    if args.command == "share":
        state = ShareableState(
            schema_text=_read(args.schema),
            json_text=_read(args.json),
            result_text=_read(args.result) if args.result else "",
        )
        print(to_query(state, args.version))
        sys.exit(EXIT_OK)

    if args.command == "open":
        state, version = from_query(args.query)
        print(f"# version: {version or 'default'}")
        print("# schema")
        print(state.schema_text)
        print("# json")
        print(state.json_text)
        print("# result")
        print(state.result_text)
        sys.exit(EXIT_OK)

    sys.exit(asyncio.run(_run(args, config)))


if __name__ == "__main__":
    main()
