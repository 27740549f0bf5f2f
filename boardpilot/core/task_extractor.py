"""Task extraction strategies for backlog seeding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class TaskExtractor(ABC):
    """Split a free-text project description into task strings."""

    @abstractmethod
    def extract(self, description: str) -> List[str]:
        """Return the tasks in order. Must not raise for any string input."""


class PeriodTaskExtractor(TaskExtractor):
    """Split on every period, trim, and drop empty pieces.

    This is a plain delimiter split, not sentence segmentation:
    "e.g. the blog" becomes two tasks.
    """

    def extract(self, description: str) -> List[str]:
        if not description:
            return []
        return [task.strip() for task in description.split(".") if task.strip()]
