"""Domain models representing tasks and task counts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class Task:
    """A single to-do item as persisted by a task store."""

    id: str
    body: str
    completed: bool
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "body": self.body,
            "completed": self.completed,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(slots=True, frozen=True)
class TodoCount:
    """Number of pending and completed tasks."""

    pending: int
    completed: int

    @property
    def total(self) -> int:
        return self.pending + self.completed

    def to_dict(self) -> dict[str, int]:
        return {"pending": self.pending, "completed": self.completed}
