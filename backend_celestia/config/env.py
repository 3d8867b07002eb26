"""
Environment variable loading and validation for Celestia.

- CELESTIA_API_URL: data service base URL (REST, paginated /transactions)
- CELESTIA_WS_URL: data service push channel
- CELESTIA_MAX_GALAXY_AMOUNT / CELESTIA_TARGET_GALAXY_AMOUNT: galaxy capacity
- CELESTIA_LAYOUT_*: spiral layout geometry and optional RNG seed
- CELESTIA_RECONNECT_* / CELESTIA_MAX_RECONNECT_ATTEMPTS: push channel retry policy
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from backend_celestia.core.exceptions import ConfigError

# Project root: config is backend_celestia/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_WS_URL = "ws://localhost:3000"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def load_celestia_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides the process env."""
    load_dotenv(_ENV_PATH, override=False)


def _raw(name: str) -> str:
    load_celestia_env()
    return (os.getenv(name) or "").strip()


def get_str(name: str, default: str) -> str:
    return _raw(name) or default


def get_float(name: str, default: float) -> float:
    raw = _raw(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def get_int(name: str, default: int) -> int:
    raw = _raw(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def get_optional_int(name: str) -> int | None:
    raw = _raw(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def get_bool(name: str, default: bool) -> bool:
    raw = _raw(name).lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def get_api_url() -> str:
    """Data service base URL without trailing slash."""
    return get_str("CELESTIA_API_URL", DEFAULT_API_URL).rstrip("/")


def get_ws_url() -> str:
    """
    Push channel URL. Falls back to the API URL with http(s) swapped for ws(s)
    when only CELESTIA_API_URL is set.
    """
    url = _raw("CELESTIA_WS_URL")
    if url:
        return url
    api = _raw("CELESTIA_API_URL")
    if api.startswith("https://"):
        return "wss://" + api[8:].rstrip("/")
    if api.startswith("http://"):
        return "ws://" + api[7:].rstrip("/")
    return DEFAULT_WS_URL


def ingestion_enabled() -> bool:
    """CELESTIA_INGESTION_ENABLED=0 runs the API without contacting the data service."""
    return get_bool("CELESTIA_INGESTION_ENABLED", True)
