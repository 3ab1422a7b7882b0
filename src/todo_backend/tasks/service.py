"""Service layer coordinating task store operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..errors import NotFoundError
from .models import Task, TodoCount
from .store import TaskStore

logger = logging.getLogger(__name__)


class TaskService:
    """Apply task business rules on top of a ``TaskStore``.

    Single-item mutations read the task first so that an unknown id is
    reported as ``NotFoundError`` instead of silently doing nothing. Batch
    mutations skip that check and tolerate missing ids.
    """

    def __init__(self, store: TaskStore):
        self._store = store

    async def create(self, task: Mapping[str, Any]) -> Task:
        logger.debug("create - call store.save")
        return await self._store.save(task)

    async def find_all(self, page: int = 1, limit: int = 10) -> list[Task]:
        logger.debug("find_all - call store.find_all page=%s limit=%s", page, limit)
        return await self._store.find_all(page, limit)

    async def find_by_id(self, task_id: str) -> Task:
        logger.debug("find_by_id - call store.find_by_id %s", task_id)
        task = await self._store.find_by_id(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    async def update_description(self, task_id: str, body: str) -> None:
        await self.find_by_id(task_id)
        logger.debug("update_description - call store.update_description %s", task_id)
        await self._store.update_description(task_id, body)

    async def update_status(self, task_id: str, completed: bool) -> None:
        await self.find_by_id(task_id)
        logger.debug("update_status - call store.update_status %s", task_id)
        await self._store.update_status(task_id, completed)

    async def delete(self, task_id: str) -> None:
        await self.find_by_id(task_id)
        logger.debug("delete - call store.delete %s", task_id)
        await self._store.delete(task_id)

    async def complete_in_batch(self, ids: Sequence[str], completed: bool) -> None:
        logger.debug("complete_in_batch - call store.complete_in_batch (%d ids)", len(ids))
        await self._store.complete_in_batch(ids, completed)

    async def delete_in_batch(self, ids: Sequence[str]) -> None:
        logger.debug("delete_in_batch - call store.delete_in_batch (%d ids)", len(ids))
        await self._store.delete_in_batch(ids)

    async def get_todo_count(self) -> TodoCount:
        """Count pending and completed tasks concurrently."""
        pending, completed = await asyncio.gather(
            self._store.count_pending(),
            self._store.count_completed(),
        )
        return TodoCount(pending=pending, completed=completed)


__all__ = ["TaskService"]
