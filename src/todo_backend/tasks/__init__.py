"""Task domain package consolidating persistence and business rules."""

from .models import Task, TodoCount
from .service import TaskService
from .sqlite_store import SqliteTaskStore
from .store import TaskStore

__all__ = [
    "Task",
    "TodoCount",
    "TaskService",
    "TaskStore",
    "SqliteTaskStore",
]
