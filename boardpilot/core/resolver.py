"""Hierarchical name resolution for Trello boards, lists, cards and members.

The resolver turns a name path such as ``[("board", "Agentika"), ("list",
"To-Do"), ("card", "Finish documentation")]`` into the matching Trello ids.
Each level issues one listing call scoped to the previous level's id and
resolution stops at the first level that fails.

Only the board level is cached. The cache belongs to the resolver instance
and follows its ``CachePolicy``; lists, cards and members are listed fresh on
every lookup.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from boardpilot.core.errors import RemoteFailure, Scope
from boardpilot.core.name_index import MemberIndex, NameIndex
from boardpilot.services.trello import TrelloClient


logger = logging.getLogger("boardpilot.resolver")

PathLevel = Tuple[str, str]

# Which level kind may follow which; boards are the unscoped root.
_PARENT_KIND = {
    "board": None,
    "list": "board",
    "member": "board",
    "card": "list",
}


@dataclass
class CachePolicy:
    """Staleness policy for the board-name cache.

    ``ttl_seconds=None`` keeps the index until ``refresh()``/``invalidate()``,
    ``0`` refetches on every lookup, a positive value expires the index after
    that many seconds. ``invalidate_on_mutation`` drops the index after any
    successful write.
    """

    ttl_seconds: Optional[float] = None
    invalidate_on_mutation: bool = False


class HierarchicalResolver:
    """Resolve name paths to Trello ids, one listing call per level."""

    def __init__(
        self,
        client: TrelloClient,
        policy: Optional[CachePolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self.policy = policy or CachePolicy()
        self._clock = clock
        self._boards: Optional[NameIndex] = None
        self._board_listing: List[dict] = []
        self._loaded_at: Optional[float] = None

    def _is_stale(self) -> bool:
        if self._boards is None or self._loaded_at is None:
            return True
        ttl = self.policy.ttl_seconds
        if ttl is None:
            return False
        return self._clock() - self._loaded_at >= ttl

    async def refresh(self) -> NameIndex:
        """Refetch the board listing and replace the cached index."""
        try:
            listing = await self._client.list_boards()
        except RemoteFailure as exc:
            raise exc.with_context("board", None)
        self._board_listing = listing
        self._boards = NameIndex.build(listing)
        self._loaded_at = self._clock()
        logger.debug("Board index refreshed with %d entries", len(self._boards))
        return self._boards

    def invalidate(self) -> None:
        self._boards = None
        self._board_listing = []
        self._loaded_at = None

    def notify_mutation(self, operation: str) -> None:
        if self.policy.invalidate_on_mutation:
            logger.debug("Dropping board index after %s", operation)
            self.invalidate()

    async def board_index(self) -> NameIndex:
        if self._is_stale():
            return await self.refresh()
        return self._boards  # type: ignore[return-value]

    async def board_listing(self, refresh: bool = False) -> List[dict]:
        """Return the raw board records behind the current index."""
        if refresh or self._is_stale():
            await self.refresh()
        return list(self._board_listing)

    async def list_index(self, board_id: str, scope: Scope = None) -> NameIndex:
        try:
            return NameIndex.build(await self._client.list_lists(board_id))
        except RemoteFailure as exc:
            raise exc.with_context("list", scope)

    async def card_listing(self, list_id: str, scope: Scope = None) -> List[dict]:
        try:
            return await self._client.list_cards(list_id)
        except RemoteFailure as exc:
            raise exc.with_context("card", scope)

    async def card_index(self, list_id: str, scope: Scope = None) -> NameIndex:
        return NameIndex.build(await self.card_listing(list_id, scope))

    async def member_index(self, board_id: str, scope: Scope = None) -> MemberIndex:
        try:
            return MemberIndex.build(await self._client.list_members(board_id))
        except RemoteFailure as exc:
            raise exc.with_context("member", scope)

    async def resolve_board(self, name: str) -> str:
        index = await self.board_index()
        return index.require(name, "board")

    async def resolve_card(self, list_id: str, name: str, scope: Scope = None) -> str:
        index = await self.card_index(list_id, scope)
        return index.require(name, "card", scope)

    async def resolve_member(self, board_id: str, query: str, scope: Scope = None) -> str:
        index = await self.member_index(board_id, scope)
        return index.match(query, scope)

    async def _resolve_level(self, kind: str, name: str, parent_id: Optional[str], scope: Scope) -> str:
        if kind == "board":
            return await self.resolve_board(name)
        if kind == "list":
            index = await self.list_index(parent_id, scope)  # type: ignore[arg-type]
            return index.require(name, "list", scope)
        if kind == "card":
            return await self.resolve_card(parent_id, name, scope)  # type: ignore[arg-type]
        return await self.resolve_member(parent_id, name, scope)  # type: ignore[arg-type]

    async def resolve(self, path: Sequence[PathLevel]) -> List[str]:
        """Resolve ``path`` left to right and return one id per level.

        Raises ``NotFoundError``, ``AmbiguousError`` or ``RemoteFailure`` for
        the first level that cannot be resolved; later levels are never looked
        up. Raises ``ValueError`` for a malformed path.
        """
        _validate_path(path)

        ids: List[str] = []
        previous: Optional[PathLevel] = None
        for kind, name in path:
            parent_id = ids[-1] if ids else None
            ids.append(await self._resolve_level(kind, name, parent_id, previous))
            logger.debug("Resolved %s %r -> %s", kind, name, ids[-1])
            previous = (kind, name)
        return ids


def _validate_path(path: Sequence[PathLevel]) -> None:
    if not path:
        raise ValueError("Resolution path must not be empty")
    previous_kind: Optional[str] = None
    for kind, _name in path:
        if kind not in _PARENT_KIND:
            raise ValueError(f"Unknown level kind: {kind!r}")
        if _PARENT_KIND[kind] != previous_kind:
            raise ValueError(f"A {kind!r} level cannot follow {previous_kind!r}")
        previous_kind = kind
