# app/core/config.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — Configuration
---------------------------------------
Central configuration for the assistant server, including:

- app metadata
- listener host/port
- static asset directory
- Gemini backend credentials and model name
- optional idle-session pruning.

Values come from environment variables (case-insensitive) and an optional
`.env` file next to the server root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

# This file is: assistant_server/app/core/config.py
APP_DIR: Path = Path(__file__).resolve().parents[1]   # .../assistant_server/app
ROOT_DIR: Path = APP_DIR.parent                       # .../assistant_server

STATIC_DIR: Path = ROOT_DIR / "static"


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """
    Global configuration for the assistant server.

    A single instance is created at import time as `settings`. The app
    factory accepts another instance, which is how tests inject their own.
    """

    model_config = SettingsConfigDict(
        env_file=ROOT_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App / server basics -----------------------------------------------
    app_name: str = "Home Security Assistant"
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False

    # ENV: HOST / PORT
    host: str = "0.0.0.0"
    port: int = 3000

    static_dir: Path = STATIC_DIR

    # --- Gemini backend -----------------------------------------------------
    # ENV: GEMINI_API_KEY=...
    # Checked on every /api/chat request, not at startup.
    gemini_api_key: str | None = Field(
        default=None,
        description="API key for the Gemini backend (env: GEMINI_API_KEY).",
    )
    gemini_model: str = "gemini-2.0-flash"

    # --- Sessions -----------------------------------------------------------
    # 0 keeps every session for the life of the process.
    session_ttl_seconds: int = 0


# Single global settings instance used by the rest of the app.
settings = Settings()
