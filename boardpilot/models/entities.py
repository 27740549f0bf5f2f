"""Value records for the remote Trello and Google Calendar entities.

These are volatile, derived copies of data owned by the remote services.
None of them is persisted between requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Board:
    id: str
    name: str
    url: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Board":
        return cls(id=str(data.get("id") or ""), name=str(data.get("name") or ""), url=data.get("url"))


@dataclass
class TrelloList:
    id: str
    name: str
    board_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TrelloList":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            board_id=data.get("idBoard"),
        )


@dataclass
class Card:
    id: str
    name: str
    list_id: Optional[str] = None
    url: Optional[str] = None
    due: Optional[str] = None
    member_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Card":
        members = data.get("idMembers")
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            list_id=data.get("idList"),
            url=data.get("shortUrl") or data.get("url"),
            due=data.get("due"),
            member_ids=[str(m) for m in members] if isinstance(members, list) else [],
        )


@dataclass
class Member:
    id: str
    full_name: str
    username: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Member":
        return cls(
            id=str(data.get("id") or ""),
            full_name=str(data.get("fullName") or ""),
            username=data.get("username"),
        )


@dataclass
class CalendarEvent:
    """A meeting to create in Google Calendar. Timestamps are ISO-8601 strings."""

    summary: str
    start: str
    end: str
    description: Optional[str] = None

    def to_api(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "summary": self.summary,
            "start": {"dateTime": self.start},
            "end": {"dateTime": self.end},
        }
        if self.description:
            body["description"] = self.description
        return body
