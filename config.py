"""
config.py - Environment-backed settings.

Values come from the process environment, optionally seeded from a local
.env file. Settings are read once per call to load_settings(); the API
and CLI each call it at startup.
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime settings for the API and CLI."""

    store_file: Optional[str] = Field(
        default=None,
        description="JSON store path. None keeps all records in memory.",
    )
    documents_dir: str = Field(
        default="data/documents",
        description="Root directory for uploaded project documents.",
    )
    log_json: bool = False
    debug: bool = False
    port: int = 8000


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in TRUTHY


def load_settings() -> Settings:
    """Read settings from the environment (and .env when present)."""
    try:
        load_dotenv()
    except UnicodeDecodeError:
        load_dotenv(encoding="cp1252")

    store_file = os.getenv("SITEBOOK_STORE_FILE", "").strip() or None
    try:
        port = int(os.getenv("PORT", "8000"))
    except ValueError:
        port = 8000

    return Settings(
        store_file=store_file,
        documents_dir=os.getenv("SITEBOOK_DOCUMENTS_DIR", "data/documents"),
        log_json=_flag("SITEBOOK_LOG_JSON"),
        debug=_flag("DEBUG"),
        port=port,
    )
