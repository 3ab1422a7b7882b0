"""Persistence interface shared by every task store backend."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Protocol

from ..errors import ValidationError
from .models import Task


class TaskStore(Protocol):
    """Read/write access to task records.

    Every operation may raise ``StoreError`` wrapping a driver fault.
    Single-item mutations are no-ops when the id is absent; existence
    checks belong to ``TaskService``.
    """

    async def initialize(self) -> None:
        """Open the connection and ensure the schema exists."""
        ...

    async def close(self) -> None:
        """Release the connection."""
        ...

    async def ping(self) -> None:
        """Raise ``StoreError`` when the backend is unreachable."""
        ...

    async def save(self, task: Mapping[str, Any]) -> Task:
        """Persist a new task built from ``task["body"]``.

        The store assigns ``id``, ``completed=False`` and both timestamps;
        any caller-supplied values for those fields are ignored.
        """
        ...

    async def find_by_id(self, task_id: str) -> Task | None:
        """Return the task or ``None`` when absent."""
        ...

    async def find_all(self, page: int = 1, limit: int = 10) -> list[Task]:
        """Return one page of tasks sorted by body ascending."""
        ...

    async def update_description(self, task_id: str, body: str) -> None:
        ...

    async def update_status(self, task_id: str, completed: bool) -> None:
        ...

    async def delete(self, task_id: str) -> None:
        ...

    async def complete_in_batch(self, ids: Sequence[str], completed: bool) -> None:
        """Set ``completed`` on every present id; missing ids are skipped."""
        ...

    async def delete_in_batch(self, ids: Sequence[str]) -> None:
        """Remove every present id; missing ids are skipped."""
        ...

    async def count_pending(self) -> int:
        ...

    async def count_completed(self) -> int:
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def extract_body(task: Mapping[str, Any]) -> str:
    """Pull the only caller-controlled field out of a create payload."""
    body = task.get("body")
    if not isinstance(body, str):
        raise ValidationError("Task body must be a string")
    return body


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


__all__ = ["TaskStore", "extract_body", "page_offset", "utc_now"]
