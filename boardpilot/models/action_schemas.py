"""Pydantic argument models for the actions exposed to the hosting agent.

Arguments arrive with camelCase names (``boardName``, ``sourceListName``);
snake_case names are accepted too.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ActionArgs(BaseModel):
    """Base class for all action argument schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class FetchBoardsArgs(ActionArgs):
    pass


class CreateListArgs(ActionArgs):
    board_name: str = Field(min_length=1, description="Name of the Trello board.")
    list_name: str = Field(min_length=1, description="Name of the list to create.")


class FetchCardsInListArgs(ActionArgs):
    board_name: str = Field(min_length=1)
    list_name: str = Field(min_length=1)


class CreateCardArgs(ActionArgs):
    board_name: str = Field(min_length=1)
    list_name: str = Field(min_length=1)
    card_name: str = Field(min_length=1, description="Title of the new card.")
    due_date: Optional[str] = Field(default=None, description="Optional ISO-8601 due date.")


class MoveCardArgs(ActionArgs):
    board_name: str = Field(min_length=1)
    source_list_name: str = Field(min_length=1, description="List the card is in now.")
    target_list_name: str = Field(min_length=1, description="List to move the card to.")
    card_name: str = Field(min_length=1)


class AssignMemberToCardArgs(ActionArgs):
    board_name: str = Field(min_length=1)
    list_name: str = Field(min_length=1)
    card_name: str = Field(min_length=1)
    member_name: str = Field(min_length=1, description="Full, first or last name of the board member.")


class SetCardDueDateArgs(ActionArgs):
    board_name: str = Field(min_length=1)
    list_name: str = Field(min_length=1)
    card_name: str = Field(min_length=1)
    due_date: str = Field(min_length=1, description="ISO-8601 due date, passed to Trello unchanged.")


class CreateProjectBacklogArgs(ActionArgs):
    board_name: str = Field(min_length=1)
    project_name: str = Field(min_length=1, description='Used to name the "<project> Backlog" list.')
    description: str = Field(description="Project description; each sentence becomes a task.")
    due_date: Optional[str] = Field(default=None, description="Optional due date shared by every task.")


class ScheduleMeetingArgs(ActionArgs):
    summary: str = Field(min_length=1)
    start_datetime: str = Field(min_length=1, alias="startDateTime", description="ISO-8601 start, e.g. 2024-11-20T10:00:00Z.")
    end_datetime: str = Field(min_length=1, alias="endDateTime", description="ISO-8601 end.")
    description: Optional[str] = None
