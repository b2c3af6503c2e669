from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "LIMITUP_PAGER_"

DEFAULT_MAX_CONSTRAINT = 33
DEFAULT_CATEGORY_WIDTH = 36
DEFAULT_PREVIEW_ROWS = 5
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024
DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_PORT = 3001


@dataclass(frozen=True)
class Settings:
    max_constraint: int = DEFAULT_MAX_CONSTRAINT
    category_width: int = DEFAULT_CATEGORY_WIDTH
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    upload_dir: Path = Path(tempfile.gettempdir())
    log_level: str = "INFO"
    api_url: str = DEFAULT_API_URL
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT


def _env(name: str, default: str) -> str:
    return os.environ.get(ENV_PREFIX + name, default)


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _env(name, str(default)).strip()
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


def load_settings() -> Settings:
    """Read settings from LIMITUP_PAGER_* environment variables."""
    return Settings(
        max_constraint=_env_int("MAX_CONSTRAINT", DEFAULT_MAX_CONSTRAINT, minimum=1),
        category_width=_env_int("CATEGORY_WIDTH", DEFAULT_CATEGORY_WIDTH, minimum=1),
        preview_rows=_env_int("PREVIEW_ROWS", DEFAULT_PREVIEW_ROWS),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES, minimum=1),
        upload_dir=Path(_env("UPLOAD_DIR", tempfile.gettempdir())),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        api_url=_env("API_URL", DEFAULT_API_URL).rstrip("/"),
        host=_env("HOST", "127.0.0.1"),
        port=_env_int("PORT", DEFAULT_PORT, minimum=1),
    )


def configure_logging(settings: Settings | None = None) -> None:
    level = (settings or load_settings()).log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
