import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from todo_backend.tasks.sqlite_store import SqliteTaskStore  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def sqlite_store(tmp_path):
    store = SqliteTaskStore(tmp_path / "todo.db")
    await store.initialize()
    try:
        yield store
    finally:
        await store.close()
