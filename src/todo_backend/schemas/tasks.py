"""Request bodies accepted by the task endpoints."""

from __future__ import annotations

from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_validator,
)


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("body must not be blank")
    return value


TaskId = Annotated[str, Field(min_length=1)]
TaskBody = Annotated[str, Field(min_length=1), AfterValidator(_require_text)]


class TaskCreate(BaseModel):
    """Fields a client may supply when creating a task.

    Anything else in the payload (``id``, ``completed``, timestamps) is
    dropped; the store assigns those.
    """

    model_config = ConfigDict(extra="ignore")

    body: TaskBody = Field(..., description="Free-text task description")


class TaskDescriptionUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    body: TaskBody


class TaskStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    completed: StrictBool


class _TaskIdBatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ids: list[TaskId] = Field(..., min_length=1)

    @field_validator("ids")
    @classmethod
    def _dedupe_ids(cls, value: list[str]) -> list[str]:
        # Deduplicate while preserving order
        seen: set[str] = set()
        unique: list[str] = []
        for task_id in value:
            if task_id not in seen:
                seen.add(task_id)
                unique.append(task_id)
        return unique


class CompleteInBatchRequest(_TaskIdBatch):
    completed: StrictBool


class DeleteInBatchRequest(_TaskIdBatch):
    pass


__all__ = [
    "CompleteInBatchRequest",
    "DeleteInBatchRequest",
    "TaskCreate",
    "TaskDescriptionUpdate",
    "TaskStatusUpdate",
]
