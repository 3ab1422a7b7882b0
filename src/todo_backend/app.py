"""Application factory for the FastAPI service."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import PROJECT_ROOT, Settings, get_settings
from .errors import install_error_handlers
from .routers.health import router as health_router
from .routers.realtime import router as realtime_router
from .routers.tasks import router as tasks_router
from .services.broadcast_hub import BroadcastHub
from .tasks.service import TaskService
from .tasks.sqlite_store import SqliteTaskStore
from .tasks.store import TaskStore

logger = logging.getLogger(__name__)

STORE_SHUTDOWN_TIMEOUT_SECONDS = 10.0


def _configure_logging() -> None:
    """Configure logging based on LOG_LEVEL environment variable."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger("todo_backend").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # pymongo is chatty at DEBUG
    if log_level > logging.DEBUG:
        logging.getLogger("pymongo").setLevel(logging.WARNING)


def _resolve_under(base: Path, p: Path) -> Path:
    # Allow absolute paths as-is (useful for tests and external mounts).
    if p.is_absolute():
        return p.resolve()
    resolved = (base / p).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"Configured path {resolved} escapes project root {base}")
    return resolved


def build_task_store(settings: Settings) -> TaskStore:
    """Instantiate the store backend selected in settings."""
    if settings.store_backend == "mongo":
        # Imported lazily so the SQLite backend never needs a Mongo driver loaded
        from .tasks.mongo_store import MongoTaskStore

        return MongoTaskStore(
            settings.mongodb_url,
            settings.mongodb_database,
            settings.mongodb_collection,
        )

    return SqliteTaskStore(_resolve_under(PROJECT_ROOT, settings.database_path))


def create_app(
    settings: Settings | None = None,
    *,
    store: TaskStore | None = None,
) -> FastAPI:
    # Configure logging first thing
    _configure_logging()

    settings = settings or get_settings()
    task_store = store if store is not None else build_task_store(settings)
    task_service = TaskService(task_store)
    broadcast_hub = BroadcastHub(queue_size=settings.subscriber_queue_size)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await task_store.initialize()
        try:
            yield
        finally:
            try:
                await asyncio.wait_for(
                    task_store.close(), timeout=STORE_SHUTDOWN_TIMEOUT_SECONDS
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Task store shutdown timed out after %.0fs",
                    STORE_SHUTDOWN_TIMEOUT_SECONDS,
                )

    app = FastAPI(
        title="Todo Backend",
        version="0.1.0",
        description="Task tracking API with real-time change notifications.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.task_store = task_store
    app.state.task_service = task_service
    app.state.broadcast_hub = broadcast_hub

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    app.include_router(tasks_router)
    app.include_router(realtime_router)
    app.include_router(health_router)

    return app


__all__ = ["build_task_store", "create_app"]
