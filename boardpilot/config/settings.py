"""Environment-backed settings for Boardpilot.

Values are read with ``os.getenv``; callers are expected to have loaded any
``.env`` file with python-dotenv beforehand (``main.py`` does this at import).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from boardpilot.config.constants import DEFAULT_BOARD_CACHE_TTL
from boardpilot.config.constants import DEFAULT_HTTP_TIMEOUT
from boardpilot.config.constants import TRELLO_BASE_URL


_FALSY = {"0", "false", "no", "off"}


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_ttl(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in {"", "none", "never"}:
        return None
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw not in _FALSY


def _get_private_key(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if not raw:
        return None
    # Keys pasted into .env files usually carry literal "\n" sequences.
    return raw.replace("\\n", "\n")


@dataclass
class Settings:
    """Runtime configuration for the Trello and Google Calendar clients."""

    trello_api_key: Optional[str] = None
    trello_api_token: Optional[str] = None
    trello_base_url: str = TRELLO_BASE_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    board_cache_ttl: Optional[float] = DEFAULT_BOARD_CACHE_TTL
    board_cache_invalidate_on_mutation: bool = False

    google_calendar_id: str = "primary"
    google_api_key: Optional[str] = None
    google_service_account_email: Optional[str] = None
    google_private_key: Optional[str] = None
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_refresh_token: Optional[str] = None
    google_access_token: Optional[str] = None

    @property
    def uses_service_account(self) -> bool:
        return bool(self.google_service_account_email and self.google_private_key)


def load_settings() -> Settings:
    """Build a Settings instance from the current environment."""

    return Settings(
        trello_api_key=os.getenv("TRELLO_API_KEY"),
        trello_api_token=os.getenv("TRELLO_API_TOKEN"),
        trello_base_url=(os.getenv("TRELLO_BASE_URL") or TRELLO_BASE_URL).rstrip("/"),
        http_timeout=_get_float("HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT),
        board_cache_ttl=_get_ttl("BOARD_CACHE_TTL_SECONDS", DEFAULT_BOARD_CACHE_TTL),
        board_cache_invalidate_on_mutation=_get_bool("BOARD_CACHE_INVALIDATE_ON_MUTATION", False),
        google_calendar_id=os.getenv("GOOGLE_CALENDAR_ID") or "primary",
        google_api_key=os.getenv("GOOGLE_API_KEY"),
        google_service_account_email=os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
        google_private_key=_get_private_key("GOOGLE_PRIVATE_KEY"),
        google_client_id=os.getenv("GOOGLE_CLIENT_ID"),
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
        google_refresh_token=os.getenv("GOOGLE_REFRESH_TOKEN"),
        google_access_token=os.getenv("GOOGLE_ACCESS_TOKEN"),
    )
