from __future__ import annotations

import pytest

from todo_backend.errors import StoreError, ValidationError
from todo_backend.tasks.sqlite_store import SqliteTaskStore

pytestmark = pytest.mark.anyio


async def test_save_assigns_server_fields(sqlite_store):
    task = await sqlite_store.save(
        {
            "body": "buy milk",
            "completed": True,
            "id": "forced-id",
            "createdAt": "1999-01-01T00:00:00+00:00",
        }
    )

    assert task.id != "forced-id"
    assert task.body == "buy milk"
    assert task.completed is False
    assert task.created_at == task.updated_at
    assert task.created_at.tzinfo is not None

    stored = await sqlite_store.find_by_id(task.id)
    assert stored == task


async def test_save_rejects_missing_body(sqlite_store):
    with pytest.raises(ValidationError):
        await sqlite_store.save({"completed": False})


async def test_find_by_id_returns_none_for_unknown(sqlite_store):
    assert await sqlite_store.find_by_id("does-not-exist") is None


async def test_ids_are_unique(sqlite_store):
    ids = {(await sqlite_store.save({"body": "same"})).id for _ in range(5)}

    assert len(ids) == 5


async def test_find_all_sorts_by_body_and_paginates(sqlite_store):
    for body in ["delta", "alpha", "echo", "charlie", "bravo"]:
        await sqlite_store.save({"body": body})

    first = await sqlite_store.find_all(page=1, limit=2)
    second = await sqlite_store.find_all(page=2, limit=2)
    third = await sqlite_store.find_all(page=3, limit=2)
    beyond = await sqlite_store.find_all(page=4, limit=2)

    assert [t.body for t in first] == ["alpha", "bravo"]
    assert [t.body for t in second] == ["charlie", "delta"]
    assert [t.body for t in third] == ["echo"]
    assert beyond == []


async def test_find_all_uses_binary_ordering(sqlite_store):
    for body in ["b", "B", "a", "A"]:
        await sqlite_store.save({"body": body})

    tasks = await sqlite_store.find_all(page=1, limit=10)

    assert [t.body for t in tasks] == ["A", "B", "a", "b"]


async def test_update_description_refreshes_updated_at(sqlite_store):
    task = await sqlite_store.save({"body": "old"})

    await sqlite_store.update_description(task.id, "new")

    updated = await sqlite_store.find_by_id(task.id)
    assert updated is not None
    assert updated.body == "new"
    assert updated.created_at == task.created_at
    assert updated.updated_at >= task.updated_at


async def test_update_status(sqlite_store):
    task = await sqlite_store.save({"body": "walk dog"})

    await sqlite_store.update_status(task.id, True)

    updated = await sqlite_store.find_by_id(task.id)
    assert updated is not None
    assert updated.completed is True
    assert updated.updated_at >= updated.created_at


async def test_single_mutations_on_missing_id_are_noops(sqlite_store):
    task = await sqlite_store.save({"body": "keep"})

    await sqlite_store.update_description("missing", "x")
    await sqlite_store.update_status("missing", True)
    await sqlite_store.delete("missing")

    assert await sqlite_store.find_by_id(task.id) == task


async def test_delete_removes_record(sqlite_store):
    task = await sqlite_store.save({"body": "gone"})

    await sqlite_store.delete(task.id)

    assert await sqlite_store.find_by_id(task.id) is None


async def test_complete_in_batch_skips_missing_ids(sqlite_store):
    a = await sqlite_store.save({"body": "a"})
    b = await sqlite_store.save({"body": "b"})
    c = await sqlite_store.save({"body": "c"})

    await sqlite_store.complete_in_batch([a.id, b.id, "missing"], True)

    assert (await sqlite_store.find_by_id(a.id)).completed is True
    assert (await sqlite_store.find_by_id(b.id)).completed is True
    assert (await sqlite_store.find_by_id(c.id)).completed is False


async def test_delete_in_batch_skips_missing_ids(sqlite_store):
    a = await sqlite_store.save({"body": "a"})
    b = await sqlite_store.save({"body": "b"})

    await sqlite_store.delete_in_batch([a.id, "missing"])

    assert await sqlite_store.find_by_id(a.id) is None
    assert await sqlite_store.find_by_id(b.id) is not None


async def test_batch_operations_handle_large_id_sets(sqlite_store):
    task = await sqlite_store.save({"body": "needle"})
    ids = [f"missing-{n}" for n in range(1200)] + [task.id]

    await sqlite_store.complete_in_batch(ids, True)
    assert (await sqlite_store.find_by_id(task.id)).completed is True

    await sqlite_store.delete_in_batch(ids)
    assert await sqlite_store.find_by_id(task.id) is None


async def test_counts_partition_all_tasks(sqlite_store):
    tasks = [await sqlite_store.save({"body": f"task {n}"}) for n in range(5)]
    await sqlite_store.complete_in_batch([tasks[0].id, tasks[3].id], True)

    pending = await sqlite_store.count_pending()
    completed = await sqlite_store.count_completed()

    assert pending == 3
    assert completed == 2
    assert pending + completed == len(await sqlite_store.find_all(1, 100))


async def test_data_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "todo.db"
    store = SqliteTaskStore(path)
    await store.initialize()
    task = await store.save({"body": "persist me"})
    await store.close()

    reopened = SqliteTaskStore(path)
    await reopened.initialize()
    try:
        assert await reopened.find_by_id(task.id) == task
    finally:
        await reopened.close()


async def test_operations_before_initialize_raise_store_error(tmp_path):
    store = SqliteTaskStore(tmp_path / "todo.db")

    with pytest.raises(StoreError):
        await store.find_all()
    with pytest.raises(StoreError):
        await store.ping()
