from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from todo_backend.errors import NotFoundError, StoreError
from todo_backend.tasks.models import Task, TodoCount
from todo_backend.tasks.service import TaskService

pytestmark = pytest.mark.anyio


def _task(task_id: str = "66041b03ae44c5744dd2c9f9", **overrides) -> Task:
    now = datetime.now(timezone.utc)
    fields = {
        "id": task_id,
        "body": "testing task",
        "completed": False,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return Task(**fields)


@pytest.fixture
def store() -> MagicMock:
    store = MagicMock()
    for name in (
        "save",
        "find_by_id",
        "find_all",
        "update_description",
        "update_status",
        "delete",
        "complete_in_batch",
        "delete_in_batch",
        "count_pending",
        "count_completed",
    ):
        setattr(store, name, AsyncMock())
    return store


@pytest.fixture
def service(store) -> TaskService:
    return TaskService(store)


async def test_create_delegates_to_store(service, store):
    created = _task()
    store.save.return_value = created

    result = await service.create({"body": "testing task"})

    assert result is created
    store.save.assert_awaited_once_with({"body": "testing task"})


async def test_find_all_passes_pagination_through(service, store):
    tasks = [_task(str(n)) for n in range(10)]
    store.find_all.return_value = tasks

    result = await service.find_all(2, 10)

    store.find_all.assert_awaited_once_with(2, 10)
    assert result == tasks


async def test_find_by_id_raises_not_found(service, store):
    store.find_by_id.return_value = None

    with pytest.raises(NotFoundError):
        await service.find_by_id("missing")


async def test_update_description_checks_existence_first(service, store):
    store.find_by_id.return_value = _task()

    await service.update_description("66041b03ae44c5744dd2c9f9", "new description")

    store.find_by_id.assert_awaited_once_with("66041b03ae44c5744dd2c9f9")
    store.update_description.assert_awaited_once_with(
        "66041b03ae44c5744dd2c9f9", "new description"
    )


@pytest.mark.parametrize(
    ("method", "args", "store_method"),
    [
        ("update_description", ("missing", "x"), "update_description"),
        ("update_status", ("missing", True), "update_status"),
        ("delete", ("missing",), "delete"),
    ],
)
async def test_single_mutations_on_missing_id_raise(
    service, store, method, args, store_method
):
    store.find_by_id.return_value = None

    with pytest.raises(NotFoundError):
        await getattr(service, method)(*args)

    getattr(store, store_method).assert_not_awaited()


async def test_update_status_and_delete_call_store(service, store):
    store.find_by_id.return_value = _task()

    await service.update_status("66041b03ae44c5744dd2c9f9", True)
    await service.delete("66041b03ae44c5744dd2c9f9")

    store.update_status.assert_awaited_once_with("66041b03ae44c5744dd2c9f9", True)
    store.delete.assert_awaited_once_with("66041b03ae44c5744dd2c9f9")


async def test_batch_operations_skip_existence_check(service, store):
    await service.complete_in_batch(["a", "b"], True)
    await service.delete_in_batch(["a", "b"])

    store.find_by_id.assert_not_awaited()
    store.complete_in_batch.assert_awaited_once_with(["a", "b"], True)
    store.delete_in_batch.assert_awaited_once_with(["a", "b"])


async def test_get_todo_count_combines_both_counts(service, store):
    store.count_pending.return_value = 1
    store.count_completed.return_value = 2

    result = await service.get_todo_count()

    assert result == TodoCount(pending=1, completed=2)
    assert result.total == 3
    store.count_pending.assert_awaited_once()
    store.count_completed.assert_awaited_once()


async def test_get_todo_count_runs_queries_concurrently(service, store):
    both_started = asyncio.Event()
    started = 0

    async def _count() -> int:
        nonlocal started
        started += 1
        if started == 2:
            both_started.set()
        await asyncio.wait_for(both_started.wait(), timeout=1)
        return 3

    store.count_pending.side_effect = _count
    store.count_completed.side_effect = _count

    result = await service.get_todo_count()

    assert result == TodoCount(pending=3, completed=3)


async def test_get_todo_count_fails_when_either_query_fails(service, store):
    store.count_pending.return_value = 5
    store.count_completed.side_effect = StoreError("boom")

    with pytest.raises(StoreError):
        await service.get_todo_count()
