"""Error types raised by the resolution and orchestration layer.

Every failure carries a machine-readable ``code`` and knows how to narrate
itself to the user in one sentence via ``user_message()``. Upstream payloads
(HTTP bodies, exception reprs) live in ``detail`` and are only ever logged.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple


# (kind, name) of the level a lookup was scoped to, e.g. ("board", "Agentika").
Scope = Optional[Tuple[str, str]]


class BoardpilotError(Exception):
    """Base class for all Boardpilot failures."""

    code = "BOARDPILOT_ERROR"

    def user_message(self) -> str:
        return "Something went wrong. Please try again."


class NotFoundError(BoardpilotError):
    """A name did not match any entry in the relevant index."""

    def __init__(self, kind: str, name: str, scope: Scope = None) -> None:
        self.kind = kind
        self.name = name
        self.scope = scope
        super().__init__(f"{kind} '{name}' not found")

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"{self.kind.upper()}_NOT_FOUND"

    def user_message(self) -> str:
        if self.kind == "member":
            where = f' on the "{self.scope[1]}" board' if self.scope else ""
            return f'I couldn\'t find a member matching "{self.name}"{where}. Please check the name and try again.'
        where = ""
        if self.scope:
            parent_kind, parent_name = self.scope
            where = f' in the "{parent_name}" {parent_kind}'
        return f'I couldn\'t find a {self.kind} named "{self.name}"{where}. Please check the name and try again.'


class AmbiguousError(BoardpilotError):
    """More than one candidate matched a fuzzy lookup."""

    def __init__(self, kind: str, name: str, candidates: List[str], scope: Scope = None) -> None:
        self.kind = kind
        self.name = name
        self.candidates = list(candidates)
        self.scope = scope
        super().__init__(f"{kind} '{name}' is ambiguous: {', '.join(self.candidates)}")

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"AMBIGUOUS_{self.kind.upper()}"

    def user_message(self) -> str:
        where = f' of the "{self.scope[1]}" {self.scope[0]}' if self.scope else ""
        options = ", ".join(self.candidates)
        return (
            f'More than one {self.kind}{where} matches "{self.name}" ({options}). '
            f"Please give me their full name."
        )


class RemoteFailure(BoardpilotError):
    """A remote listing or write call failed (network, auth, rate limit, service error)."""

    code = "REMOTE_FAILURE"

    def __init__(
        self,
        operation: str,
        status_code: Optional[int] = None,
        detail: Any = None,
        kind: Optional[str] = None,
        scope: Scope = None,
    ) -> None:
        self.operation = operation
        self.status_code = status_code
        self.detail = detail
        self.kind = kind
        self.scope = scope
        status = f"HTTP {status_code}" if status_code is not None else "no response"
        super().__init__(f"{operation} failed ({status})")

    def with_context(self, kind: str, scope: Scope) -> "RemoteFailure":
        self.kind = kind
        self.scope = scope
        return self

    def user_message(self) -> str:
        if self.kind == "board":
            return "There was an error retrieving your Trello boards. Please try again later."
        if self.kind and self.scope:
            return (
                f'There was an error retrieving {self.kind}s for the "{self.scope[1]}" {self.scope[0]}. '
                f"Please try again."
            )
        return "There was an error talking to Trello. Please try again."


class MutationError(RemoteFailure):
    """A create/update/move write failed. Earlier writes of the same action stay applied."""

    code = "MUTATION_FAILED"

    _DESCRIPTIONS = {
        "create_list": "creating the list",
        "create_card": "creating the card",
        "move_card": "moving the card",
        "set_due_date": "setting the due date",
        "add_member": "assigning the member",
    }

    def user_message(self) -> str:
        what = self._DESCRIPTIONS.get(self.operation, "updating Trello")
        return f"There was an error {what}. Please try again."


class CalendarAuthError(RemoteFailure):
    """No calendar access token could be obtained."""

    code = "AUTH_ERROR"

    def user_message(self) -> str:
        return "Unable to authenticate with Google Calendar. Please check the calendar credentials."


class ValidationFailure(BoardpilotError):
    """Structured action arguments were rejected before any resolution began."""

    code = "VALIDATION_ERROR"

    def __init__(self, action: str, problems: List[str]) -> None:
        self.action = action
        self.problems = list(problems)
        super().__init__(f"invalid arguments for {action}: {'; '.join(self.problems)}")

    def user_message(self) -> str:
        return f"I couldn't run {self.action}: {'; '.join(self.problems)}."
