"""Google Calendar client for scheduling meetings."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from boardpilot.config.constants import DEFAULT_HTTP_TIMEOUT, GOOGLE_CALENDAR_BASE_URL
from boardpilot.config.settings import Settings
from boardpilot.core.errors import CalendarAuthError, RemoteFailure
from boardpilot.models.entities import CalendarEvent
from boardpilot.services.google_oauth import TokenProvider, token_provider_from_settings


logger = logging.getLogger("boardpilot.calendar")


class CalendarClient:
    """Create events in one Google Calendar."""

    def __init__(
        self,
        calendar_id: str,
        token_provider: TokenProvider,
        api_key: Optional[str] = None,
        base_url: str = GOOGLE_CALENDAR_BASE_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._calendar_id = calendar_id
        self._tokens = token_provider
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "CalendarClient":
        return cls(
            calendar_id=settings.google_calendar_id,
            token_provider=token_provider_from_settings(settings, transport=transport),
            api_key=settings.google_api_key,
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def _auth_headers(self, force_refresh: bool = False) -> Dict[str, str]:
        token = await self._tokens.get_access_token(force_refresh=force_refresh)
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    async def create_event(self, event: CalendarEvent) -> Dict[str, Any]:
        """Create ``event`` and return the remote event resource."""

        headers = await self._auth_headers()
        if not headers:
            raise CalendarAuthError("create_event", detail="no access token")

        url = f"{self._base_url}/calendars/{quote(self._calendar_id, safe='@.')}/events"
        params = {"key": self._api_key} if self._api_key else None
        body = event.to_api()

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(url, headers=headers, params=params, json=body)

                # The cached token may have just expired; retry once with a fresh one.
                if resp.status_code == 401:
                    logger.warning("Calendar API returned 401, retrying with fresh token...")
                    headers = await self._auth_headers(force_refresh=True)
                    if headers:
                        resp = await client.post(url, headers=headers, params=params, json=body)

            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("Calendar create_event returned %s: %s", status, exc.response.text)
            if status == 401:
                raise CalendarAuthError("create_event", status_code=status, detail=exc.response.text) from exc
            raise RemoteFailure("create_event", status_code=status, detail=exc.response.text) from exc
        except httpx.RequestError as exc:
            logger.error("Network error creating calendar event: %r", exc)
            raise RemoteFailure("create_event", detail=repr(exc)) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Calendar create_event returned a non-JSON body")
            raise RemoteFailure("create_event", status_code=resp.status_code, detail=resp.text) from exc
        return data if isinstance(data, dict) else {}
