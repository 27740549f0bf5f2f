"""Action definitions and execution for Boardpilot.

This module registers every named action the hosting agent can invoke,
together with an OpenAI-style function schema generated from its pydantic
argument model. ``run_action`` validates the arguments, dispatches to the
orchestration pipeline and returns a plain result dict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import ValidationError

from boardpilot.core.errors import ValidationFailure
from boardpilot.core.pipeline import ActionResult, OrchestrationPipeline
from boardpilot.models.action_schemas import (
    ActionArgs,
    AssignMemberToCardArgs,
    CreateCardArgs,
    CreateListArgs,
    CreateProjectBacklogArgs,
    FetchBoardsArgs,
    FetchCardsInListArgs,
    MoveCardArgs,
    ScheduleMeetingArgs,
    SetCardDueDateArgs,
)
from boardpilot.utils.logger import generate_request_id, log_info, log_warn


ActionExecutor = Callable[..., Awaitable[ActionResult]]


@dataclass
class ActionSpec:
    name: str
    description: str
    args_model: Type[ActionArgs]
    method: str

    def schema(self) -> Dict[str, Any]:
        parameters = self.args_model.model_json_schema(by_alias=True)
        parameters.pop("title", None)
        parameters.setdefault("properties", {})
        parameters.setdefault("required", [])
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


_ACTIONS: Dict[str, ActionSpec] = {}


def _register_action(name: str, description: str, args_model: Type[ActionArgs], method: str) -> None:
    _ACTIONS[name] = ActionSpec(name=name, description=description, args_model=args_model, method=method)


_register_action(
    "fetchBoards",
    "Retrieve a list of all ongoing Trello projects (boards) for the user.",
    FetchBoardsArgs,
    "fetch_boards",
)
_register_action(
    "createList",
    "Create a new list in a Trello board, both given by name.",
    CreateListArgs,
    "create_list",
)
_register_action(
    "fetchCardsInList",
    "Retrieve all tasks (cards) in a Trello list.",
    FetchCardsInListArgs,
    "fetch_cards_in_list",
)
_register_action(
    "createCard",
    "Add a new card, with an optional due date, to a list in a Trello board.",
    CreateCardArgs,
    "create_card",
)
_register_action(
    "moveCard",
    "Move a card from one list to another list on the same Trello board.",
    MoveCardArgs,
    "move_card",
)
_register_action(
    "assignMemberToCard",
    "Assign a board member, matched by part of their name, to a Trello card.",
    AssignMemberToCardArgs,
    "assign_member_to_card",
)
_register_action(
    "setCardDueDate",
    "Set the due date of a Trello card.",
    SetCardDueDateArgs,
    "set_card_due_date",
)
_register_action(
    "createProjectBacklog",
    "Split a project description into tasks, create a backlog list and add one card per task.",
    CreateProjectBacklogArgs,
    "create_project_backlog",
)
_register_action(
    "scheduleMeeting",
    "Schedule a new meeting in Google Calendar.",
    ScheduleMeetingArgs,
    "schedule_meeting",
)


def get_action_names() -> List[str]:
    return list(_ACTIONS.keys())


def get_tool_schemas() -> List[Dict[str, Any]]:
    """Return the OpenAI tool schemas for every registered action."""

    return [spec.schema() for spec in _ACTIONS.values()]


def validate_args(name: str, args: Optional[Dict[str, Any]]) -> ActionArgs:
    """Validate raw action arguments, raising ``ValidationFailure`` on rejection."""

    spec = _ACTIONS[name]
    try:
        return spec.args_model.model_validate(args or {})
    except ValidationError as exc:
        problems = []
        for err in exc.errors():
            field_name = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
            problems.append(f"{field_name}: {err.get('msg')}")
        raise ValidationFailure(name, problems) from exc


async def run_action(
    pipeline: OrchestrationPipeline,
    name: str,
    args: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate ``args`` and run action ``name``; never raises for bad input."""

    request_id = request_id or generate_request_id()
    spec = _ACTIONS.get(name)
    if spec is None:
        return {
            "success": False,
            "error": "UNKNOWN_ACTION",
            "message": f"I don't know how to {name}. Available actions: {', '.join(get_action_names())}.",
            "commit": True,
        }

    try:
        parsed = validate_args(name, args)
    except ValidationFailure as failure:
        log_warn(f"Rejected arguments for {name}", request_id=request_id, problems=failure.problems)
        return ActionResult(success=False, message=failure.user_message(), error=failure.code).to_dict()

    log_info(f"Running action {name}", request_id=request_id, args=parsed.model_dump())
    executor: ActionExecutor = getattr(pipeline, spec.method)
    result = await executor(**parsed.model_dump(), request_id=request_id)
    return result.to_dict()
