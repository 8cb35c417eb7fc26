"""
Test doubles: a fake registry and CDN serving the miniature library.
"""

import asyncio
import types
from pathlib import Path

from schema_tester import LoadedModule
from schema_tester.errors import LoadError

REGISTRY_URL = "https://registry.test/v1/packages/npm"
CDN_URL = "https://cdn.test/npm"

MINIZOD_SOURCE = (Path(__file__).parent / "fixtures" / "minizod.py").read_text(encoding="utf-8")

TAGS = {
    "alpha": "3.0.0-alpha.33",
    "beta": "3.0.0-beta.4",
    "canary": "3.24.3-canary.20250220T012004",
    "latest": "3.24.2",
    "next": "3.24.2",
}

PUBLISHED = [
    "3.24.3-canary.20250220T012004",
    "3.24.3-canary.20250219T000000",
    "3.24.2",
    "3.24.1",
    "3.22.0-beta.3",
    "3.22.0-beta.2",
    "3.1.0-rc.1",
    "3.1.0-rc.2",
    "3.0.0-beta.4",
    "3.0.0-alpha.33",
    "1.11.17",
]


def links(version: str) -> dict[str, str]:
    return {
        "self": f"{REGISTRY_URL}/zod@{version}",
        "entrypoints": f"{REGISTRY_URL}/zod@{version}/entrypoints",
        "stats": f"https://stats.test/zod@{version}",
    }


def registry_payload(versions=None, tags=None) -> dict:
    versions = PUBLISHED if versions is None else versions
    return {
        "versions": [{"version": v, "links": links(v)} for v in versions],
        "tags": TAGS if tags is None else tags,
    }


def module_source(version: str) -> str:
    return MINIZOD_SOURCE.replace('__version__ = "0.0.0"', f'__version__ = "{version}"')


def module_url(version: str) -> str:
    return f"{CDN_URL}/zod@{version}/index.py"


def make_module(version: str) -> LoadedModule:
    """Execute the miniature library into a fresh module, as the CDN loader does."""
    namespace = types.ModuleType(f"zod@{version}")
    exec(compile(module_source(version), module_url(version), "exec"), namespace.__dict__)
    return LoadedModule(version=version, namespace=namespace, origin=module_url(version))


class GatedModuleLoader:
    """ModuleLoader whose loads finish only when the test opens their gate."""

    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []
        self.failing: set[str] = set()

    def gate(self, version: str) -> asyncio.Event:
        return self.gates.setdefault(version, asyncio.Event())

    async def resolve(self, version: str) -> LoadedModule:
        self.calls.append(version)
        await self.gate(version).wait()
        if version in self.failing:
            raise LoadError(f"Failed to fetch zod@{version}", version=version)
        return make_module(version)
