"""MongoDB-backed task store using Motor (async MongoDB driver)."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from ..errors import StoreError
from .models import Task
from .store import extract_body, page_offset, utc_now

logger = logging.getLogger(__name__)


def _object_id(task_id: str) -> ObjectId | None:
    """Parse a task id, returning None for ids Mongo could never have issued."""
    try:
        return ObjectId(task_id)
    except (InvalidId, TypeError):
        return None


def _object_ids(ids: Sequence[str]) -> list[ObjectId]:
    parsed = (_object_id(task_id) for task_id in ids)
    return [oid for oid in parsed if oid is not None]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MongoTaskStore:
    """Persist and retrieve tasks from a MongoDB collection."""

    backend_name = "mongo"

    def __init__(
        self,
        url: str,
        database: str,
        collection: str = "todos",
        *,
        client: AsyncIOMotorClient | None = None,
    ):
        self._url = url
        self._database_name = database
        self._collection_name = collection
        self._client = client
        self._owns_client = client is None
        self._collection: AsyncIOMotorCollection | None = None

    async def initialize(self) -> None:
        """Connect, verify the server answers, and ensure indexes exist."""
        if self._collection is not None:
            return

        if self._client is None:
            self._client = AsyncIOMotorClient(self._url, tz_aware=True)
        collection = self._client[self._database_name][self._collection_name]
        try:
            await self._client.admin.command("ping")
            await collection.create_index([("body", ASCENDING), ("_id", ASCENDING)])
            await collection.create_index("completed")
        except PyMongoError as exc:
            raise StoreError(f"Error connecting to MongoDB: {exc}") from exc
        self._collection = collection
        # Only log the host part so credentials never reach the logs
        logger.info(
            "Task store connected to MongoDB %s / %s.%s",
            self._url.split("@")[-1],
            self._database_name,
            self._collection_name,
        )

    async def close(self) -> None:
        """Close the MongoDB connection."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
        self._collection = None

    def _tasks(self) -> AsyncIOMotorCollection:
        if self._collection is None:
            raise StoreError("Task store is not initialized")
        return self._collection

    def _doc_to_task(self, doc: Mapping[str, Any]) -> Task:
        return Task(
            id=str(doc["_id"]),
            body=doc["body"],
            completed=bool(doc.get("completed", False)),
            created_at=_as_utc(doc["createdAt"]),
            updated_at=_as_utc(doc["updatedAt"]),
        )

    async def ping(self) -> None:
        if self._client is None:
            raise StoreError("Task store is not initialized")
        try:
            await self._client.admin.command("ping")
        except PyMongoError as exc:
            raise StoreError(f"MongoDB ping failed: {exc}") from exc

    async def save(self, task: Mapping[str, Any]) -> Task:
        now = utc_now()
        doc = {
            "body": extract_body(task),
            "completed": False,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            result = await self._tasks().insert_one(doc)
        except PyMongoError as exc:
            raise StoreError(f"Error saving task: {exc}") from exc
        logger.debug("save - inserted task %s", result.inserted_id)
        return Task(
            id=str(result.inserted_id),
            body=doc["body"],
            completed=False,
            created_at=now,
            updated_at=now,
        )

    async def find_by_id(self, task_id: str) -> Task | None:
        logger.debug("find_by_id - %s", task_id)
        oid = _object_id(task_id)
        if oid is None:
            return None
        try:
            doc = await self._tasks().find_one({"_id": oid})
        except PyMongoError as exc:
            raise StoreError(f"Error retrieving task '{task_id}': {exc}") from exc
        if doc is None:
            return None
        return self._doc_to_task(doc)

    async def find_all(self, page: int = 1, limit: int = 10) -> list[Task]:
        logger.debug("find_all - page=%s limit=%s", page, limit)
        cursor = (
            self._tasks()
            .find({})
            .sort([("body", ASCENDING), ("_id", ASCENDING)])
            .skip(page_offset(page, limit))
            .limit(limit)
        )
        try:
            docs = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            raise StoreError(f"Error listing tasks: {exc}") from exc
        return [self._doc_to_task(doc) for doc in docs]

    async def _update_one(self, task_id: str, fields: dict[str, Any]) -> None:
        oid = _object_id(task_id)
        if oid is None:
            return
        fields["updatedAt"] = utc_now()
        try:
            await self._tasks().update_one({"_id": oid}, {"$set": fields})
        except PyMongoError as exc:
            raise StoreError(f"Error updating task '{task_id}': {exc}") from exc

    async def update_description(self, task_id: str, body: str) -> None:
        logger.debug("update_description - %s", task_id)
        await self._update_one(task_id, {"body": body})

    async def update_status(self, task_id: str, completed: bool) -> None:
        logger.debug("update_status - %s -> %s", task_id, completed)
        await self._update_one(task_id, {"completed": completed})

    async def delete(self, task_id: str) -> None:
        logger.debug("delete - %s", task_id)
        oid = _object_id(task_id)
        if oid is None:
            return
        try:
            await self._tasks().delete_one({"_id": oid})
        except PyMongoError as exc:
            raise StoreError(f"Error deleting task '{task_id}': {exc}") from exc

    async def complete_in_batch(self, ids: Sequence[str], completed: bool) -> None:
        oids = _object_ids(ids)
        if not oids:
            return
        try:
            result = await self._tasks().update_many(
                {"_id": {"$in": oids}},
                {"$set": {"completed": completed, "updatedAt": utc_now()}},
            )
        except PyMongoError as exc:
            raise StoreError(f"Error completing tasks in batch: {exc}") from exc
        logger.debug(
            "complete_in_batch - %s of %d ids matched", result.matched_count, len(ids)
        )

    async def delete_in_batch(self, ids: Sequence[str]) -> None:
        oids = _object_ids(ids)
        if not oids:
            return
        try:
            result = await self._tasks().delete_many({"_id": {"$in": oids}})
        except PyMongoError as exc:
            raise StoreError(f"Error deleting tasks in batch: {exc}") from exc
        logger.debug(
            "delete_in_batch - %s of %d ids deleted", result.deleted_count, len(ids)
        )

    async def _count(self, completed: bool) -> int:
        try:
            return await self._tasks().count_documents({"completed": completed})
        except PyMongoError as exc:
            raise StoreError(f"Error counting tasks: {exc}") from exc

    async def count_pending(self) -> int:
        return await self._count(False)

    async def count_completed(self) -> int:
        return await self._count(True)


__all__ = ["MongoTaskStore"]
