"""REST API endpoints for task management."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from ..config import Settings
from ..schemas.tasks import (
    CompleteInBatchRequest,
    DeleteInBatchRequest,
    TaskCreate,
    TaskDescriptionUpdate,
    TaskStatusUpdate,
)
from ..services.broadcast_hub import (
    TASK_BATCH_COMPLETED,
    TASK_BATCH_DELETED,
    TASK_CREATED,
    TASK_DELETED,
    TASK_DESCRIPTION_UPDATED,
    TASK_STATUS_UPDATED,
    BroadcastHub,
)
from ..tasks.service import TaskService

router = APIRouter(prefix="/todo", tags=["todo"])
logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
# Largest row offset both backends accept (signed 64-bit)
MAX_OFFSET = 2**63 - 1


def _state_or_503(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task service not initialized",
        )
    return value


def get_task_service(request: Request) -> TaskService:
    """Dependency to get the task service from app state."""
    return _state_or_503(request, "task_service")


def get_broadcast_hub(request: Request) -> BroadcastHub:
    """Dependency to get the broadcast hub from app state."""
    return _state_or_503(request, "broadcast_hub")


def get_app_settings(request: Request) -> Settings:
    return _state_or_503(request, "settings")


TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
BroadcastHubDep = Annotated[BroadcastHub, Depends(get_broadcast_hub)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def parse_positive_int(value: str | None, default: int) -> int:
    """Parse a query value, falling back to ``default`` instead of failing."""
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


@router.post("/create")
async def create_task(
    body: TaskCreate, service: TaskServiceDep, hub: BroadcastHubDep
) -> dict[str, Any]:
    """Create a new task."""
    task = await service.create(body.model_dump())
    record = task.to_dict()
    await hub.publish(TASK_CREATED, record)
    return {"data": record}


@router.get("/")
async def list_tasks(
    service: TaskServiceDep,
    settings: SettingsDep,
    page: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    """List tasks sorted by body, one page at a time."""
    page_number = parse_positive_int(page, DEFAULT_PAGE)
    page_size = min(
        parse_positive_int(limit, settings.default_page_size),
        settings.max_page_size,
    )
    # Pages past the last addressable row are simply empty
    page_number = min(page_number, MAX_OFFSET // page_size + 1)
    logger.debug("list_tasks - page=%s limit=%s", page_number, page_size)
    tasks = await service.find_all(page_number, page_size)
    return {"data": [task.to_dict() for task in tasks]}


@router.get("/get-count-todo")
async def count_tasks(service: TaskServiceDep) -> dict[str, Any]:
    """Return the number of pending and completed tasks."""
    counts = await service.get_todo_count()
    return {"data": counts.to_dict()}


@router.get("/{task_id}")
async def get_task(task_id: str, service: TaskServiceDep) -> dict[str, Any]:
    """Get a specific task."""
    task = await service.find_by_id(task_id)
    return {"data": task.to_dict()}


@router.put(
    "/update-description/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def update_description(
    task_id: str,
    body: TaskDescriptionUpdate,
    service: TaskServiceDep,
    hub: BroadcastHubDep,
) -> Response:
    """Replace the body text of a task."""
    await service.update_description(task_id, body.body)
    await hub.publish(TASK_DESCRIPTION_UPDATED, {"id": task_id, "body": body.body})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/update-status/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def update_status(
    task_id: str,
    body: TaskStatusUpdate,
    service: TaskServiceDep,
    hub: BroadcastHubDep,
) -> Response:
    """Mark a task as completed or pending."""
    await service.update_status(task_id, body.completed)
    await hub.publish(TASK_STATUS_UPDATED, {"id": task_id, "completed": body.completed})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/complete-in-batch")
async def complete_in_batch(
    body: CompleteInBatchRequest, service: TaskServiceDep, hub: BroadcastHubDep
) -> dict[str, Any]:
    """Set the completed flag on several tasks; unknown ids are skipped."""
    await service.complete_in_batch(body.ids, body.completed)
    payload = {"ids": body.ids, "completed": body.completed}
    await hub.publish(TASK_BATCH_COMPLETED, payload)
    return {"data": payload}


@router.delete("/delete-in-batch")
async def delete_in_batch(
    body: DeleteInBatchRequest, service: TaskServiceDep, hub: BroadcastHubDep
) -> dict[str, Any]:
    """Delete several tasks; unknown ids are skipped."""
    await service.delete_in_batch(body.ids)
    payload = {"ids": body.ids}
    await hub.publish(TASK_BATCH_DELETED, payload)
    return {"data": payload}


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_task(
    task_id: str, service: TaskServiceDep, hub: BroadcastHubDep
) -> Response:
    """Delete a task."""
    await service.delete(task_id)
    await hub.publish(TASK_DELETED, {"id": task_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router", "parse_positive_int"]
