"""
Logging setup shared by the CLI and the Playground service.

Formats:
- text: human-readable lines on stderr
- json: one JSON object per record, including `extra` fields
"""

from __future__ import annotations

import logging
import sys

import json_log_formatter

from .config import Config

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: Config, level: str | None = None) -> None:
    """Configure the root logger.

    Args:
        config: Configuration carrying log level and format
        level: Overrides config.log_level when given
    """
    level_name = (level or config.log_level).upper()

    if config.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
