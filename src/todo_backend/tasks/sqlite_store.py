"""SQLite-backed task store."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from ..errors import StoreError
from .models import Task
from .store import extract_body, page_offset, utc_now

logger = logging.getLogger(__name__)

# Stay well below SQLITE_MAX_VARIABLE_NUMBER on older builds
_BATCH_CHUNK_SIZE = 500


def _chunks(ids: Sequence[str], size: int = _BATCH_CHUNK_SIZE) -> Iterable[Sequence[str]]:
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


class SqliteTaskStore:
    """Persist and retrieve tasks from SQLite."""

    backend_name = "sqlite"

    def __init__(self, database_path: Path):
        self._path = database_path
        self._connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open the SQLite connection and ensure tables exist."""
        if self._connection is not None:
            return

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA journal_mode=WAL;")
            await self._create_schema()
        except (aiosqlite.Error, OSError) as exc:
            raise StoreError(f"Error opening task database {self._path}: {exc}") from exc
        logger.info("Task store opened at %s", self._path)

    async def _create_schema(self) -> None:
        assert self._connection is not None
        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                body TEXT NOT NULL,
                completed INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_tasks_body ON tasks(body);
            CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(completed);
            """
        )
        await self._connection.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    def _db(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StoreError("Task store is not initialized")
        return self._connection

    def _row_to_task(self, row: aiosqlite.Row) -> Task:
        return Task(
            id=row["id"],
            body=row["body"],
            completed=bool(row["completed"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def _write(self, sql: str, params: Sequence[Any]) -> int:
        db = self._db()
        try:
            cursor = await db.execute(sql, params)
            changed = cursor.rowcount
            await cursor.close()
            await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(f"Error writing tasks: {exc}") from exc
        return changed

    async def _fetch(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        db = self._db()
        try:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
            await cursor.close()
        except aiosqlite.Error as exc:
            raise StoreError(f"Error reading tasks: {exc}") from exc
        return list(rows)

    async def ping(self) -> None:
        await self._fetch("SELECT 1")

    async def save(self, task: Mapping[str, Any]) -> Task:
        body = extract_body(task)
        now = utc_now()
        created = Task(
            id=uuid.uuid4().hex,
            body=body,
            completed=False,
            created_at=now,
            updated_at=now,
        )
        logger.debug("save - insert task %s", created.id)
        await self._write(
            """
            INSERT INTO tasks (id, body, completed, created_at, updated_at)
            VALUES (?, ?, 0, ?, ?)
            """,
            (created.id, created.body, now.isoformat(), now.isoformat()),
        )
        return created

    async def find_by_id(self, task_id: str) -> Task | None:
        logger.debug("find_by_id - %s", task_id)
        rows = await self._fetch("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if not rows:
            return None
        return self._row_to_task(rows[0])

    async def find_all(self, page: int = 1, limit: int = 10) -> list[Task]:
        logger.debug("find_all - page=%s limit=%s", page, limit)
        rows = await self._fetch(
            """
            SELECT * FROM tasks
            ORDER BY body ASC, id ASC
            LIMIT ? OFFSET ?
            """,
            (limit, page_offset(page, limit)),
        )
        return [self._row_to_task(row) for row in rows]

    async def update_description(self, task_id: str, body: str) -> None:
        logger.debug("update_description - %s", task_id)
        await self._write(
            "UPDATE tasks SET body = ?, updated_at = ? WHERE id = ?",
            (body, utc_now().isoformat(), task_id),
        )

    async def update_status(self, task_id: str, completed: bool) -> None:
        logger.debug("update_status - %s -> %s", task_id, completed)
        await self._write(
            "UPDATE tasks SET completed = ?, updated_at = ? WHERE id = ?",
            (int(completed), utc_now().isoformat(), task_id),
        )

    async def delete(self, task_id: str) -> None:
        logger.debug("delete - %s", task_id)
        await self._write("DELETE FROM tasks WHERE id = ?", (task_id,))

    async def complete_in_batch(self, ids: Sequence[str], completed: bool) -> None:
        now = utc_now().isoformat()
        updated = 0
        for chunk in _chunks(list(ids)):
            placeholders = ", ".join("?" for _ in chunk)
            updated += await self._write(
                f"UPDATE tasks SET completed = ?, updated_at = ? WHERE id IN ({placeholders})",
                (int(completed), now, *chunk),
            )
        logger.debug(
            "complete_in_batch - %d of %d ids updated", updated, len(ids)
        )

    async def delete_in_batch(self, ids: Sequence[str]) -> None:
        deleted = 0
        for chunk in _chunks(list(ids)):
            placeholders = ", ".join("?" for _ in chunk)
            deleted += await self._write(
                f"DELETE FROM tasks WHERE id IN ({placeholders})",
                tuple(chunk),
            )
        logger.debug("delete_in_batch - %d of %d ids deleted", deleted, len(ids))

    async def _count(self, completed: bool) -> int:
        rows = await self._fetch(
            "SELECT COUNT(*) AS total FROM tasks WHERE completed = ?",
            (int(completed),),
        )
        return int(rows[0]["total"])

    async def count_pending(self) -> int:
        return await self._count(False)

    async def count_completed(self) -> int:
        return await self._count(True)


__all__ = ["SqliteTaskStore"]
