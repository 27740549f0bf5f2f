"""In-memory Trello stand-in for tests, served through ``httpx.MockTransport``."""

import itertools
from typing import Any, Dict, List, Optional, Tuple

import httpx

from boardpilot.core.dispatcher import MutationDispatcher
from boardpilot.core.pipeline import OrchestrationPipeline
from boardpilot.core.resolver import HierarchicalResolver
from boardpilot.services.trello import TrelloClient


class FakeTrello:
    """Answers the Trello endpoints Boardpilot uses and records every request."""

    def __init__(
        self,
        boards: Optional[List[Dict[str, Any]]] = None,
        lists: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        cards: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        members: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> None:
        self.boards = boards or []
        self.lists = lists or {}
        self.cards = cards or {}
        self.members = members or {}
        self.requests: List[Tuple[str, str, Dict[str, str]]] = []
        self._failures: Dict[Tuple[str, str], Tuple[int, int]] = {}
        self._ids = itertools.count(1)

    def fail(self, method: str, path: str, status: int = 500, after: int = 0) -> None:
        """Make ``method path`` fail with ``status`` once ``after`` calls have succeeded."""
        self._failures[(method, path)] = (status, after)

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[Tuple[str, str, Dict[str, str]]]:
        return [
            req
            for req in self.requests
            if (method is None or req[0] == method) and (path is None or req[1] == path)
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> TrelloClient:
        return TrelloClient("test-key", "test-token", transport=self.transport())

    def _should_fail(self, method: str, path: str) -> Optional[int]:
        failure = self._failures.get((method, path))
        if failure is None:
            return None
        status, after = failure
        done = len(self.calls(method, path)) - 1
        return status if done >= after else None

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        if path.startswith("/1/"):
            path = path[2:]
        params = dict(request.url.params)
        self.requests.append((method, path, params))

        status = self._should_fail(method, path)
        if status is not None:
            return httpx.Response(status, json={"message": "upstream exploded"})

        parts = path.strip("/").split("/")

        if method == "GET" and path == "/members/me/boards":
            return httpx.Response(200, json=self.boards)
        if method == "GET" and len(parts) == 3 and parts[0] == "boards" and parts[2] == "lists":
            return httpx.Response(200, json=self.lists.get(parts[1], []))
        if method == "GET" and len(parts) == 3 and parts[0] == "boards" and parts[2] == "members":
            return httpx.Response(200, json=self.members.get(parts[1], []))
        if method == "GET" and len(parts) == 3 and parts[0] == "lists" and parts[2] == "cards":
            return httpx.Response(200, json=self.cards.get(parts[1], []))

        if method == "POST" and path == "/lists":
            created = {"id": f"list-{next(self._ids)}", "name": params["name"], "idBoard": params["idBoard"]}
            self.lists.setdefault(params["idBoard"], []).append(created)
            return httpx.Response(200, json=created)
        if method == "POST" and path == "/cards":
            created = {
                "id": f"card-{next(self._ids)}",
                "name": params["name"],
                "idList": params["idList"],
                "due": params.get("due"),
                "url": "https://trello.com/c/new",
            }
            self.cards.setdefault(params["idList"], []).append(created)
            return httpx.Response(200, json=created)
        if method == "PUT" and len(parts) == 2 and parts[0] == "cards":
            return self._update_card(parts[1], params)
        if method == "POST" and len(parts) == 3 and parts[0] == "cards" and parts[2] == "idMembers":
            return httpx.Response(200, json=[{"id": params["value"]}])

        return httpx.Response(404, text="not found")

    def _update_card(self, card_id: str, params: Dict[str, str]) -> httpx.Response:
        for list_id, cards in self.cards.items():
            for card in cards:
                if card["id"] != card_id:
                    continue
                if "due" in params:
                    card["due"] = params["due"]
                if "idList" in params and params["idList"] != list_id:
                    cards.remove(card)
                    card["idList"] = params["idList"]
                    self.cards.setdefault(params["idList"], []).append(card)
                return httpx.Response(200, json=card)
        return httpx.Response(404, text="The requested resource was not found.")


def agentika() -> FakeTrello:
    """A small workspace: one "Agentika" board with To-Do/Done lists and two members."""

    return FakeTrello(
        boards=[
            {"id": "board-agentika", "name": "Agentika", "url": "https://trello.com/b/agentika"},
            {"id": "board-pm", "name": "Project Management", "url": "https://trello.com/b/pm"},
        ],
        lists={
            "board-agentika": [
                {"id": "list-todo", "name": "To-Do"},
                {"id": "list-done", "name": "Done"},
            ],
        },
        cards={
            "list-todo": [
                {"id": "card-docs", "name": "Finish documentation", "url": "https://trello.com/c/docs", "idList": "list-todo"},
            ],
            "list-done": [],
        },
        members={
            "board-agentika": [
                {"id": "member-john", "fullName": "John Doe", "username": "johnd"},
                {"id": "member-jane", "fullName": "Jane Doe", "username": "janed"},
            ],
        },
    )


def make_pipeline(trello: FakeTrello, calendar=None) -> OrchestrationPipeline:
    """Wire a real resolver, dispatcher and pipeline to ``trello``."""

    client = trello.client()
    resolver = HierarchicalResolver(client)
    dispatcher = MutationDispatcher(client, on_mutation=resolver.notify_mutation)
    return OrchestrationPipeline(resolver=resolver, dispatcher=dispatcher, calendar=calendar)
