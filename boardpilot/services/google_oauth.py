"""Google OAuth access-token providers for the calendar client.

Two flows are supported:

- ``ServiceAccountTokenProvider`` signs an RS256 JWT assertion for a service
  account (PyJWT) and exchanges it at the Google token endpoint.
- ``RefreshTokenProvider`` trades a long-lived OAuth refresh token for an
  access token.

Both cache the access token until shortly before it expires. A provider
returns ``None`` when no token can be obtained; the reason is logged.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import httpx
import jwt

from boardpilot.config.constants import DEFAULT_HTTP_TIMEOUT
from boardpilot.config.constants import GOOGLE_CALENDAR_SCOPE
from boardpilot.config.constants import GOOGLE_TOKEN_URL
from boardpilot.config.constants import JWT_BEARER_GRANT
from boardpilot.config.constants import SERVICE_ACCOUNT_TOKEN_LIFETIME
from boardpilot.config.constants import TOKEN_EXPIRY_MARGIN
from boardpilot.config.settings import Settings


logger = logging.getLogger("boardpilot.google_oauth")


class TokenProvider(ABC):
    """Source of short-lived bearer tokens, cached per instance."""

    def __init__(
        self,
        token_url: str = GOOGLE_TOKEN_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._token_url = token_url
        self._timeout = timeout
        self._transport = transport
        self._clock = clock
        self._cached_token: Optional[str] = None
        self._expires_at: float = 0.0

    @abstractmethod
    def _grant(self) -> Optional[Dict[str, str]]:
        """Return the form body for the token request, or None if unconfigured."""

    async def get_access_token(self, force_refresh: bool = False) -> Optional[str]:
        if not force_refresh and self._cached_token and self._clock() < self._expires_at:
            return self._cached_token

        if force_refresh:
            self._cached_token = None
            self._expires_at = 0.0
            logger.info("Forcing token refresh...")

        data = self._grant()
        if data is None:
            return None

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._token_url, data=data)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Google token endpoint returned %s: %s",
                exc.response.status_code,
                exc.response.text,
            )
            return None
        except httpx.RequestError as exc:
            logger.error("Error requesting Google access token: %r", exc)
            return None

        try:
            payload = resp.json()
        except ValueError:
            logger.error("Google token endpoint returned a non-JSON body: %r", resp.text[:200])
            return None

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            logger.error("Token endpoint response missing access_token: %r", payload)
            return None

        try:
            expires_in = int(payload.get("expires_in") or SERVICE_ACCOUNT_TOKEN_LIFETIME)
        except (TypeError, ValueError):
            expires_in = SERVICE_ACCOUNT_TOKEN_LIFETIME

        self._cached_token = token
        self._expires_at = self._clock() + max(0, expires_in - TOKEN_EXPIRY_MARGIN)
        return token


class ServiceAccountTokenProvider(TokenProvider):
    """JWT-bearer flow for a Google service account."""

    def __init__(
        self,
        service_account_email: str,
        private_key: str,
        scope: str = GOOGLE_CALENDAR_SCOPE,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._email = service_account_email
        self._private_key = private_key
        self._scope = scope

    def build_assertion(self) -> str:
        now = int(self._clock())
        claims = {
            "iss": self._email,
            "scope": self._scope,
            "aud": self._token_url,
            "iat": now,
            "exp": now + SERVICE_ACCOUNT_TOKEN_LIFETIME,
        }
        return jwt.encode(claims, self._private_key, algorithm="RS256")

    def _grant(self) -> Optional[Dict[str, str]]:
        try:
            assertion = self.build_assertion()
        except (ValueError, TypeError, jwt.PyJWTError) as exc:
            logger.error("Unable to sign service account assertion: %r", exc)
            return None
        return {"grant_type": JWT_BEARER_GRANT, "assertion": assertion}


class RefreshTokenProvider(TokenProvider):
    """Refresh-token flow for a user-authorized OAuth client."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token

    def _grant(self) -> Optional[Dict[str, str]]:
        if not self._client_id or not self._client_secret or not self._refresh_token:
            logger.error(
                "Missing GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET / GOOGLE_REFRESH_TOKEN; "
                "cannot refresh Google access token.",
            )
            return None
        return {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "refresh_token": self._refresh_token,
            "grant_type": "refresh_token",
        }


class StaticTokenProvider(TokenProvider):
    """Use a manually supplied access token as-is."""

    def __init__(self, access_token: str) -> None:
        super().__init__()
        self._access_token = access_token

    def _grant(self) -> Optional[Dict[str, str]]:
        return None

    async def get_access_token(self, force_refresh: bool = False) -> Optional[str]:
        return self._access_token


def token_provider_from_settings(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TokenProvider:
    """Pick the token flow the settings are configured for."""

    if settings.google_access_token:
        return StaticTokenProvider(settings.google_access_token)
    if settings.uses_service_account:
        return ServiceAccountTokenProvider(
            settings.google_service_account_email,  # type: ignore[arg-type]
            settings.google_private_key,  # type: ignore[arg-type]
            timeout=settings.http_timeout,
            transport=transport,
        )
    return RefreshTokenProvider(
        settings.google_client_id,
        settings.google_client_secret,
        settings.google_refresh_token,
        timeout=settings.http_timeout,
        transport=transport,
    )
