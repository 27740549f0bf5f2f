"""User-facing Trello and calendar operations.

Each public coroutine runs one fixed chain of name resolutions followed by at
most one kind of write, and always returns a single ``ActionResult``. Nothing
is retried and nothing is rolled back: a failure ends the operation with a
narrated sentence, and any writes that already happened stay in Trello.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from boardpilot.core.dispatcher import Mutation, MutationDispatcher
from boardpilot.core.errors import BoardpilotError, RemoteFailure
from boardpilot.core.resolver import HierarchicalResolver
from boardpilot.core.task_extractor import PeriodTaskExtractor, TaskExtractor
from boardpilot.models.entities import Board, CalendarEvent, Card, TrelloList
from boardpilot.presenters.narration import format_backlog_partial, format_board_list, format_card_list
from boardpilot.services.calendar import CalendarClient
from boardpilot.utils.logger import log_error


logger = logging.getLogger("boardpilot.pipeline")


class OperationState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    MUTATING = "mutating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ActionResult:
    """Terminal outcome of one action: a narration plus structured data."""

    success: bool
    message: str
    error: Optional[str] = None
    stage: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    commit: bool = True

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success, "message": self.message, "commit": self.commit}
        if self.error:
            result["error"] = self.error
        if self.stage:
            result["stage"] = self.stage
        if self.data:
            result["data"] = self.data
        return result


class _Run:
    """Tracks the state machine of a single action invocation."""

    def __init__(self, action: str, request_id: Optional[str] = None) -> None:
        self.action = action
        self.request_id = request_id
        self.state = OperationState.IDLE
        self.stage: Optional[str] = None

    def _move(self, state: OperationState, stage: Optional[str]) -> None:
        self.state = state
        self.stage = stage
        logger.debug("%s: %s (%s)", self.action, state.value, stage)

    def resolving(self, step: str) -> None:
        self._move(OperationState.RESOLVING, f"resolve:{step}")

    def mutating(self, operation: Mutation) -> None:
        self._move(OperationState.MUTATING, f"mutate:{operation.value}")

    def calling(self, step: str) -> None:
        self._move(OperationState.MUTATING, step)

    def done(self, message: str, **data: Any) -> ActionResult:
        self._move(OperationState.DONE, None)
        return ActionResult(success=True, message=message, data=data)

    def failed(self, exc: BoardpilotError, message: Optional[str] = None, **data: Any) -> ActionResult:
        stage = self.stage
        # A multi-level resolve() reports which level failed through the error itself.
        if stage == "resolve:path" and getattr(exc, "kind", None):
            stage = f"resolve:{exc.kind}"
        self.state = OperationState.FAILED
        if isinstance(exc, RemoteFailure):
            log_error(
                f"{self.action} failed at {stage}",
                request_id=self.request_id,
                operation=exc.operation,
                status_code=exc.status_code,
                upstream=exc.detail,
            )
        else:
            logger.info("%s stopped at %s: %s", self.action, stage, exc)
        return ActionResult(
            success=False,
            message=message or exc.user_message(),
            error=exc.code,
            stage=stage,
            data=data,
        )


class OrchestrationPipeline:
    """Compose resolution, mutation and task extraction into named actions."""

    def __init__(
        self,
        resolver: HierarchicalResolver,
        dispatcher: MutationDispatcher,
        calendar: Optional[CalendarClient] = None,
        extractor: Optional[TaskExtractor] = None,
    ) -> None:
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.calendar = calendar
        self.extractor = extractor or PeriodTaskExtractor()

    async def fetch_boards(self, request_id: Optional[str] = None) -> ActionResult:
        """List every board. A full listing also refreshes the board cache."""
        run = _Run("fetchBoards", request_id)
        run.resolving("boards")
        try:
            listing = await self.resolver.board_listing(refresh=True)
        except BoardpilotError as exc:
            return run.failed(exc, "There was an error fetching your Trello projects. Please try again later.")
        boards = [Board.from_api(record) for record in listing]
        return run.done(format_board_list(boards), boards=[asdict(board) for board in boards])

    async def create_list(self, board_name: str, list_name: str, request_id: Optional[str] = None) -> ActionResult:
        run = _Run("createList", request_id)
        try:
            run.resolving("board")
            (board_id,) = await self.resolver.resolve([("board", board_name)])
            run.mutating(Mutation.CREATE_LIST)
            outcome = await self.dispatcher.apply(Mutation.CREATE_LIST, [board_id], {"name": list_name})
        except BoardpilotError as exc:
            return run.failed(exc)
        return run.done(
            f'Successfully created the list "{list_name}" in the "{board_name}" board!',
            list=asdict(TrelloList.from_api(outcome.entity)),
        )

    async def fetch_cards_in_list(self, board_name: str, list_name: str, request_id: Optional[str] = None) -> ActionResult:
        run = _Run("fetchCardsInList", request_id)
        try:
            run.resolving("path")
            _board_id, list_id = await self.resolver.resolve([("board", board_name), ("list", list_name)])
            run.resolving("cards")
            listing = await self.resolver.card_listing(list_id, ("list", list_name))
        except BoardpilotError as exc:
            return run.failed(exc)
        cards = [Card.from_api(record) for record in listing]
        return run.done(format_card_list(list_name, cards), cards=[asdict(card) for card in cards])

    async def create_card(
        self,
        board_name: str,
        list_name: str,
        card_name: str,
        due_date: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> ActionResult:
        run = _Run("createCard", request_id)
        try:
            run.resolving("path")
            _board_id, list_id = await self.resolver.resolve([("board", board_name), ("list", list_name)])
            run.mutating(Mutation.CREATE_CARD)
            outcome = await self.dispatcher.apply(
                Mutation.CREATE_CARD,
                [list_id],
                {"name": card_name, "due": due_date},
            )
        except BoardpilotError as exc:
            return run.failed(exc)

        message = f'Successfully created the card "{card_name}" in the "{list_name}" list of the "{board_name}" board!'
        if due_date:
            message = message[:-1] + f", due {due_date}."
        return run.done(message, card=asdict(Card.from_api(outcome.entity)))

    async def move_card(
        self,
        board_name: str,
        source_list_name: str,
        target_list_name: str,
        card_name: str,
        request_id: Optional[str] = None,
    ) -> ActionResult:
        run = _Run("moveCard", request_id)
        board_scope = ("board", board_name)
        try:
            run.resolving("board")
            (board_id,) = await self.resolver.resolve([("board", board_name)])
            # Source and target come from the same listing of the board's lists.
            run.resolving("list")
            lists = await self.resolver.list_index(board_id, board_scope)
            source_id = lists.require(source_list_name, "list", board_scope)
            run.resolving("target_list")
            target_id = lists.require(target_list_name, "list", board_scope)
            run.resolving("card")
            card_id = await self.resolver.resolve_card(source_id, card_name, ("list", source_list_name))
            run.mutating(Mutation.MOVE_CARD)
            outcome = await self.dispatcher.apply(Mutation.MOVE_CARD, [card_id, target_id])
        except BoardpilotError as exc:
            return run.failed(exc)
        return run.done(
            f'Moved the card "{card_name}" from "{source_list_name}" to "{target_list_name}" in the "{board_name}" board.',
            card=asdict(Card.from_api(outcome.entity)),
        )

    async def assign_member_to_card(
        self,
        board_name: str,
        list_name: str,
        card_name: str,
        member_name: str,
        request_id: Optional[str] = None,
    ) -> ActionResult:
        run = _Run("assignMemberToCard", request_id)
        try:
            run.resolving("path")
            board_id, _list_id, card_id = await self.resolver.resolve(
                [("board", board_name), ("list", list_name), ("card", card_name)]
            )
            run.resolving("member")
            member_id = await self.resolver.resolve_member(board_id, member_name, ("board", board_name))
            run.mutating(Mutation.ADD_MEMBER)
            outcome = await self.dispatcher.apply(Mutation.ADD_MEMBER, [card_id, member_id])
        except BoardpilotError as exc:
            return run.failed(exc)
        return run.done(
            f'Assigned {member_name} to the card "{card_name}" in the "{list_name}" list.',
            member_id=member_id,
            card_id=card_id,
            members=outcome.entity.get("members", []),
        )

    async def set_card_due_date(
        self,
        board_name: str,
        list_name: str,
        card_name: str,
        due_date: str,
        request_id: Optional[str] = None,
    ) -> ActionResult:
        run = _Run("setCardDueDate", request_id)
        try:
            run.resolving("path")
            _board_id, _list_id, card_id = await self.resolver.resolve(
                [("board", board_name), ("list", list_name), ("card", card_name)]
            )
            run.mutating(Mutation.SET_DUE_DATE)
            outcome = await self.dispatcher.apply(Mutation.SET_DUE_DATE, [card_id], {"due": due_date})
        except BoardpilotError as exc:
            return run.failed(exc)
        return run.done(f'Set the due date of "{card_name}" to {due_date}.', card=asdict(Card.from_api(outcome.entity)))

    async def create_project_backlog(
        self,
        board_name: str,
        project_name: str,
        description: str,
        due_date: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> ActionResult:
        """Create "<project> Backlog" and one card per task in ``description``.

        Cards are created one at a time. If a creation fails the loop stops and
        the result lists which tasks were added and which were not.
        """
        run = _Run("createProjectBacklog", request_id)
        list_name = f"{project_name} Backlog"
        try:
            run.resolving("board")
            (board_id,) = await self.resolver.resolve([("board", board_name)])
            run.mutating(Mutation.CREATE_LIST)
            backlog = await self.dispatcher.apply(Mutation.CREATE_LIST, [board_id], {"name": list_name})
        except BoardpilotError as exc:
            return run.failed(exc)
        backlog_list = asdict(TrelloList.from_api(backlog.entity))

        tasks = self.extractor.extract(description)
        if not tasks:
            run.stage = "extract"
            run.state = OperationState.FAILED
            return ActionResult(
                success=False,
                message="I couldn't find any tasks in the provided description. Please provide a detailed description.",
                error="NO_TASKS",
                stage=run.stage,
                data={"list": backlog_list},
            )

        created: List[str] = []
        for position, task in enumerate(tasks):
            try:
                run.mutating(Mutation.CREATE_CARD)
                await self.dispatcher.apply(
                    Mutation.CREATE_CARD,
                    [backlog.entity_id],  # type: ignore[list-item]
                    {"name": task, "due": due_date},
                )
            except BoardpilotError as exc:
                skipped = tasks[position + 1:]
                return run.failed(
                    exc,
                    format_backlog_partial(list_name, board_name, created, task, skipped),
                    list=backlog_list,
                    created=created,
                    failed=task,
                    skipped=skipped,
                )
            created.append(task)

        return run.done(
            f'I successfully created a backlog list named "{list_name}" in the "{board_name}" board '
            f"and added {len(created)} tasks!",
            list=backlog_list,
            created=created,
        )

    async def schedule_meeting(
        self,
        summary: str,
        start_datetime: str,
        end_datetime: str,
        description: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> ActionResult:
        run = _Run("scheduleMeeting", request_id)
        if self.calendar is None:
            return ActionResult(
                success=False,
                message="Google Calendar is not configured, so I can't schedule meetings yet.",
                error="CALENDAR_NOT_CONFIGURED",
            )

        event = CalendarEvent(summary=summary, start=start_datetime, end=end_datetime, description=description)
        try:
            run.calling("calendar:create_event")
            created = await self.calendar.create_event(event)
        except BoardpilotError as exc:
            message = exc.user_message() if exc.code == "AUTH_ERROR" else "Failed to schedule the meeting. Please try again."
            return run.failed(exc, message)

        link = created.get("htmlLink")
        if link:
            return run.done(f"Meeting scheduled successfully! Here is the link: {link}", event=created)
        return run.done(f'Meeting "{summary}" scheduled successfully!', event=created)
