"""Single-write Trello mutations over fully resolved ids."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence

from boardpilot.core.errors import MutationError, RemoteFailure
from boardpilot.services.trello import TrelloClient


logger = logging.getLogger("boardpilot.dispatcher")


class Mutation(str, Enum):
    CREATE_LIST = "create_list"
    CREATE_CARD = "create_card"
    MOVE_CARD = "move_card"
    SET_DUE_DATE = "set_due_date"
    ADD_MEMBER = "add_member"


# Number of resolved ids each mutation expects, in order.
_ARITY = {
    Mutation.CREATE_LIST: ("board",),
    Mutation.CREATE_CARD: ("list",),
    Mutation.MOVE_CARD: ("card", "target list"),
    Mutation.SET_DUE_DATE: ("card",),
    Mutation.ADD_MEMBER: ("card", "member"),
}


@dataclass
class MutationOutcome:
    """The remote service's view of the entity after a write."""

    operation: Mutation
    entity_id: Optional[str]
    entity_name: Optional[str]
    entity: Dict[str, Any] = field(default_factory=dict)


class MutationDispatcher:
    """Issue exactly one Trello write per ``apply`` call.

    There is no rollback: when a multi-step action fails part way, the writes
    already applied stay applied.
    """

    def __init__(self, client: TrelloClient, on_mutation: Optional[Callable[[str], None]] = None) -> None:
        self._client = client
        self._on_mutation = on_mutation

    async def apply(
        self,
        operation: Mutation,
        resolved_ids: Sequence[str],
        payload: Optional[Dict[str, Any]] = None,
    ) -> MutationOutcome:
        operation = Mutation(operation)
        expected = _ARITY[operation]
        if len(resolved_ids) != len(expected):
            raise ValueError(f"{operation.value} expects ids for {', '.join(expected)}, got {len(resolved_ids)}")
        payload = payload or {}

        try:
            entity = await self._write(operation, list(resolved_ids), payload)
        except RemoteFailure as exc:
            raise MutationError(operation.value, status_code=exc.status_code, detail=exc.detail) from exc

        outcome = _normalize(operation, entity)
        logger.info("Applied %s -> %s", operation.value, outcome.entity_id)
        if self._on_mutation is not None:
            self._on_mutation(operation.value)
        return outcome

    async def _write(self, operation: Mutation, ids: list, payload: Dict[str, Any]) -> Any:
        if operation is Mutation.CREATE_LIST:
            return await self._client.create_list(ids[0], payload["name"])
        if operation is Mutation.CREATE_CARD:
            return await self._client.create_card(ids[0], payload["name"], due=payload.get("due"))
        if operation is Mutation.MOVE_CARD:
            return await self._client.update_card(ids[0], {"idList": ids[1]}, operation=operation.value)
        if operation is Mutation.SET_DUE_DATE:
            return await self._client.update_card(ids[0], {"due": payload["due"]}, operation=operation.value)
        return await self._client.add_member(ids[0], ids[1])


def _normalize(operation: Mutation, entity: Any) -> MutationOutcome:
    # Attaching a member returns the card's member list rather than the card.
    if isinstance(entity, list):
        return MutationOutcome(operation, None, None, {"members": entity})
    if not isinstance(entity, dict):
        return MutationOutcome(operation, None, None, {})
    entity_id = entity.get("id")
    name = entity.get("name")
    return MutationOutcome(
        operation,
        str(entity_id) if entity_id else None,
        name if isinstance(name, str) else None,
        entity,
    )
