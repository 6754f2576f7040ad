"""Configuration helpers for the reception board."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    state_path: Path
    uploads_dir: Path
    admin_username: str
    admin_password: str
    session_secret: str
    static_dir: Optional[Path] = None
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    state_path = Path(os.getenv("STATE_PATH", "data/state.json")).expanduser()
    uploads_dir = Path(os.getenv("UPLOADS_DIR", "uploads")).expanduser()
    static_dir = os.getenv("STATIC_DIR")

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("ADMIN_PASSWORD is not set. Falling back to the development password.")
        admin_password = "changeme"
    session_secret = os.getenv("SESSION_SECRET")
    if not session_secret:
        logger.warning("SESSION_SECRET is not set. Session cookies use a development secret.")
        session_secret = "development-secret"

    return Settings(
        state_path=state_path,
        uploads_dir=uploads_dir,
        admin_username=os.getenv("ADMIN_USERNAME", "admin"),
        admin_password=admin_password,
        session_secret=session_secret,
        static_dir=Path(static_dir).expanduser() if static_dir else None,
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))),
    )


__all__ = ["Settings", "load_settings"]
