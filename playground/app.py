"""
Schema Tester Playground - HTTP API over the validation pipeline.

The editor front end talks to this service:
- List library versions and switch the active one
- Fetch type stubs for editor assistance
- Validate JSON against schema source
- Encode and decode shareable session links

Usage:
    uvicorn playground.app:app --port 8081
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from schema_tester import Config, LoadError, Session, create_session
from schema_tester.logs import setup_logging

from .config import Settings
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage HTTP client and session lifecycle."""
    settings: Settings = app.state.settings
    config: Config = app.state.config
    setup_logging(config, settings.log_level)
    config.log_config()

    client = httpx.AsyncClient(follow_redirects=True, timeout=config.registry.timeout)
    session = create_session(client, config)
    app.state.session = session

    if settings.preload:
        await _preload(session, settings.initial_version or None)

    yield

    await client.aclose()


async def _preload(session: Session, version: str | None) -> None:
    try:
        await session.select_version(version)
    except LoadError as e:
        # Startup continues; the client can pick another version
        logger.warning(f"Initial library load failed: {e.message}")


def create_app(
    settings: Settings | None = None,
    config: Config | None = None,
    session: Session | None = None,
) -> FastAPI:
    """Create the Playground FastAPI app.

    Args:
        settings: Service settings (default: from environment)
        config: Pipeline configuration (default: from environment)
        session: Prebuilt session; skips the default lifespan when given
    """
    settings = settings or Settings()
    config = config or Config.from_env()

    app = FastAPI(
        title="Schema Tester Playground",
        description=(
            "Validate JSON documents against schemas written for any published "
            "version of the validation library."
        ),
        version="1.0.0",
        lifespan=None if session is not None else lifespan,
    )
    app.state.settings = settings
    app.state.config = config
    if session is not None:
        app.state.session = session

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(router, prefix="/api/v1")

    @app.get("/api")
    async def api_info():
        return {
            "service": "schema-tester-playground",
            "description": "Validate JSON against versioned validation-library schemas",
            "library": config.registry.library,
            "aliases": list(config.profile.aliases),
            "endpoints": {
                "versions": "GET /api/v1/versions",
                "version": "GET|PUT /api/v1/version",
                "declarations": "GET /api/v1/declarations?version=",
                "validate": "POST /api/v1/validate",
                "share": "POST /api/v1/share",
                "open": "GET /api/v1/share?schema=&json=&result=&version=",
                "defaults": "GET /api/v1/defaults",
            },
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "schema-tester-playground"}

    # Serve the editor build when configured
    if settings.static_dir:
        static_dir = Path(settings.static_dir)
        if not static_dir.is_dir():
            raise ValueError(f"PLAYGROUND_STATIC_DIR {static_dir} is not a directory")
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="frontend")

    return app


app = create_app()
