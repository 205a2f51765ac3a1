"""
Process configuration for the character sheet API.

Everything is read from the environment on demand, with defaults:
- FIELD_LAYOUT_PATH: packaged field_layout.toml
- REDIS_URL: redis://localhost:6379/0
- CACHE_TTL_SECONDS: 900
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_CACHE_TTL_SECONDS = 900
DEFAULT_CREDENTIALS_FILE = "credentials.json"


def _parse_flag(raw: Optional[str], *, default: bool) -> bool:
    if raw is None:
        return default
    v = raw.strip().lower()
    return v not in ("0", "false", "no", "off", "")


def get_app_version() -> str:
    return os.getenv("APP_VERSION", "0.1.0")


def get_field_layout_path() -> Path:
    raw = os.getenv("FIELD_LAYOUT_PATH")
    if raw:
        return Path(raw)
    # app/core/settings.py -> app/modules/characters/field_layout.toml
    return Path(__file__).resolve().parents[1] / "modules" / "characters" / "field_layout.toml"


def get_redis_url() -> str:
    return os.getenv("REDIS_URL", DEFAULT_REDIS_URL)


def get_cache_ttl_seconds() -> int:
    raw = os.getenv("CACHE_TTL_SECONDS")
    if raw is None:
        return DEFAULT_CACHE_TTL_SECONDS
    try:
        v = int(raw)
    except ValueError:
        return DEFAULT_CACHE_TTL_SECONDS
    return v if v > 0 else DEFAULT_CACHE_TTL_SECONDS


def is_cache_enabled() -> bool:
    return _parse_flag(os.getenv("CACHE_ENABLED"), default=True)


def resolve_identity_enabled() -> bool:
    """
    RESOLVE_IDENTITY=1 -> path key is a caller identity mapped to a document id
    RESOLVE_IDENTITY=0 -> path key is the spreadsheet document id itself
    """
    return _parse_flag(os.getenv("RESOLVE_IDENTITY"), default=True)


def get_service_account_info() -> str:
    return os.getenv("SERVICE_ACCOUNT_INFORMATION", "")


def get_credentials_file() -> str:
    return os.getenv("GOOGLE_CREDENTIALS_FILE", DEFAULT_CREDENTIALS_FILE)


def get_bind_address() -> tuple[str, int]:
    host = os.getenv("HOST", "127.0.0.1")
    try:
        port = int(os.getenv("PORT", "3000"))
    except ValueError:
        port = 3000
    return host, port
