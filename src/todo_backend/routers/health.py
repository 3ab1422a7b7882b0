"""Liveness endpoint reporting store reachability."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..errors import StoreError

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
async def healthcheck(request: Request) -> JSONResponse:
    store = request.app.state.task_store
    hub = request.app.state.broadcast_hub
    backend = getattr(store, "backend_name", type(store).__name__)

    try:
        await store.ping()
    except StoreError as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "store": backend},
        )

    content: dict[str, Any] = {
        "status": "ok",
        "store": backend,
        "subscribers": hub.subscriber_count,
    }
    return JSONResponse(content=content)


__all__ = ["router"]
