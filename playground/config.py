"""
Configuration for the Schema Tester Playground.

Registry, CDN and library profile settings come from schema_tester.config
(SCHEMA_TESTER_* variables); this covers the HTTP service itself.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Playground configuration."""

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8081)
    log_level: str = Field(default="INFO")

    # Version loaded at startup (empty = registry default)
    initial_version: str = Field(default="", description="Library version to load on startup")
    preload: bool = Field(default=True, description="Load the initial version during startup")

    # Built editor front end (index.html and assets); empty = API only
    static_dir: str = Field(default="", description="Directory served at /")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173", "http://localhost:8080"],
    )

    model_config = {"env_prefix": "PLAYGROUND_"}
