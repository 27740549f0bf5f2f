"""Case-insensitive name lookups built from Trello listing responses.

``NameIndex`` maps the trimmed, lower-cased name to an id. When two entries
share that key the one listed last wins; the collision is logged but not
otherwise handled, so callers that care must disambiguate upstream.

``MemberIndex`` does fuzzy matching for board members: a query matches a
member when it is a substring of the member's full, first or last name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from boardpilot.core.errors import AmbiguousError, NotFoundError, Scope
from boardpilot.models.entities import Member


logger = logging.getLogger("boardpilot.name_index")


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class NameIndex:
    """Lower-cased name -> id mapping. Rebuilt from each listing, never patched."""

    def __init__(self, ids: Dict[str, str], names: Dict[str, str]) -> None:
        self._ids = ids
        self._names = names

    @classmethod
    def build(cls, listing: Iterable[Dict[str, Any]], name_key: str = "name") -> "NameIndex":
        ids: Dict[str, str] = {}
        names: Dict[str, str] = {}
        for record in listing:
            if not isinstance(record, dict):
                continue
            entity_id = record.get("id")
            name = record.get(name_key)
            if not entity_id or not isinstance(name, str):
                continue
            key = _normalize(name)
            if not key:
                continue
            if key in ids and ids[key] != str(entity_id):
                logger.warning("Duplicate name %r in listing: %s replaces %s", name, entity_id, ids[key])
            ids[key] = str(entity_id)
            names[key] = name
        return cls(ids, names)

    def get(self, name: str) -> Optional[str]:
        return self._ids.get(_normalize(name))

    def display_name(self, name: str) -> Optional[str]:
        """Return the name as the remote service spells it."""
        return self._names.get(_normalize(name))

    def require(self, name: str, kind: str, scope: Scope = None) -> str:
        entity_id = self.get(name)
        if entity_id is None:
            raise NotFoundError(kind, name, scope)
        return entity_id

    def names(self) -> List[str]:
        return list(self._names.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _normalize(name) in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class MemberIndex:
    """Fuzzy member matcher over full/first/last name projections."""

    def __init__(self, entries: List[Tuple[str, str, Tuple[str, ...]]]) -> None:
        # (member id, display name, lower-cased projections)
        self._entries = entries

    @classmethod
    def build(cls, members: Iterable[Dict[str, Any]]) -> "MemberIndex":
        entries: List[Tuple[str, str, Tuple[str, ...]]] = []
        for member in members:
            if not isinstance(member, dict):
                continue
            record = Member.from_api(member)
            full_name = record.full_name.strip()
            if not record.id or not full_name:
                continue
            parts = full_name.lower().split()
            projections = (full_name.lower(), parts[0], parts[-1])
            entries.append((record.id, full_name, projections))
        return cls(entries)

    def candidates(self, query: str) -> List[Tuple[str, str]]:
        needle = _normalize(query)
        if not needle:
            return []
        return [
            (member_id, display)
            for member_id, display, projections in self._entries
            if any(needle in projection for projection in projections)
        ]

    def match(self, query: str, scope: Scope = None) -> str:
        found = self.candidates(query)
        if not found:
            raise NotFoundError("member", query, scope)
        if len(found) > 1:
            raise AmbiguousError("member", query, [display for _, display in found], scope)
        return found[0][0]

    def __len__(self) -> int:
        return len(self._entries)
