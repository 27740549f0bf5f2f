"""Trello REST client for Boardpilot.

Thin async wrappers over the Trello endpoints the resolver and dispatcher
need. Every call opens a short-lived ``httpx.AsyncClient``; failures are
raised as ``RemoteFailure`` with the upstream body attached as ``detail``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from boardpilot.config.constants import DEFAULT_HTTP_TIMEOUT, TRELLO_BASE_URL
from boardpilot.config.settings import Settings
from boardpilot.core.errors import RemoteFailure


logger = logging.getLogger("boardpilot.trello")


def _response_detail(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class TrelloClient:
    """Key/token authenticated access to the Trello REST API."""

    def __init__(
        self,
        api_key: Optional[str],
        api_token: Optional[str],
        base_url: str = TRELLO_BASE_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._api_token = api_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "TrelloClient":
        return cls(
            api_key=settings.trello_api_key,
            api_token=settings.trello_api_token,
            base_url=settings.trello_base_url,
            timeout=settings.http_timeout,
            transport=transport,
        )

    def _auth_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self._api_key:
            params["key"] = self._api_key
        if self._api_token:
            params["token"] = self._api_token
        return params

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        query = self._auth_params()
        if params:
            query.update({k: v for k, v in params.items() if v is not None})

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.request(method, f"{self._base_url}{path}", params=query)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = _response_detail(exc.response)
            logger.error("Trello %s returned %s: %r", operation, exc.response.status_code, detail)
            raise RemoteFailure(operation, status_code=exc.response.status_code, detail=detail) from exc
        except httpx.RequestError as exc:
            logger.error("Network error during Trello %s: %r", operation, exc)
            raise RemoteFailure(operation, detail=repr(exc)) from exc

        try:
            return resp.json()
        except ValueError as exc:
            logger.error("Trello %s returned a non-JSON body", operation)
            raise RemoteFailure(operation, status_code=resp.status_code, detail=resp.text) from exc

    async def _listing(self, path: str, operation: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        data = await self._request("GET", path, operation, params=params)
        if not isinstance(data, list):
            raise RemoteFailure(operation, detail=data)
        return [item for item in data if isinstance(item, dict)]

    async def list_boards(self) -> List[Dict[str, Any]]:
        """List boards for the authenticated member."""
        return await self._listing("/members/me/boards", "list_boards", {"fields": "id,name,url"})

    async def list_lists(self, board_id: str) -> List[Dict[str, Any]]:
        return await self._listing(f"/boards/{board_id}/lists", "list_lists", {"fields": "id,name,idBoard"})

    async def list_cards(self, list_id: str) -> List[Dict[str, Any]]:
        return await self._listing(
            f"/lists/{list_id}/cards",
            "list_cards",
            {"fields": "id,name,url,shortUrl,due,idList,idMembers"},
        )

    async def list_members(self, board_id: str) -> List[Dict[str, Any]]:
        return await self._listing(f"/boards/{board_id}/members", "list_members", {"fields": "id,fullName,username"})

    async def create_list(self, board_id: str, name: str) -> Dict[str, Any]:
        return await self._request("POST", "/lists", "create_list", {"name": name, "idBoard": board_id})

    async def create_card(self, list_id: str, name: str, due: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("POST", "/cards", "create_card", {"idList": list_id, "name": name, "due": due})

    async def update_card(
        self,
        card_id: str,
        fields: Dict[str, Any],
        operation: str = "update_card",
    ) -> Dict[str, Any]:
        """PUT the given Trello card fields (``idList``, ``due``, ...)."""
        return await self._request("PUT", f"/cards/{card_id}", operation, dict(fields))

    async def add_member(self, card_id: str, member_id: str) -> Any:
        return await self._request("POST", f"/cards/{card_id}/idMembers", "add_member", {"value": member_id})
