"""Process configuration read from the environment (and a .env file if present)."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

anthropic_api_key: str = os.getenv("ANTHROPIC_API_KEY", "")
default_model: str = os.getenv("TOOL_LIB_MODEL", "haiku").strip().lower()
log_level: str = os.getenv("TOOL_LIB_LOG_LEVEL", "WARNING").strip().upper()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command line use. Library code never calls this."""
    logging.basicConfig(
        level=getattr(logging, level or log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
