"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    store_backend: Literal["sqlite", "mongo"] = Field(
        default="sqlite",
        validation_alias=AliasChoices("TODO_STORE_BACKEND", "store_backend"),
    )
    database_path: Path = Field(
        default_factory=lambda: Path("data/todo.db"),
        validation_alias=AliasChoices("TODO_DATABASE_PATH", "database_path"),
    )
    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("MONGODB_URL", "mongodb_url"),
    )
    mongodb_database: str = Field(
        default="todo",
        validation_alias=AliasChoices("MONGODB_DATABASE", "mongodb_database"),
    )
    mongodb_collection: str = Field(
        default="todos",
        validation_alias=AliasChoices("MONGODB_COLLECTION", "mongodb_collection"),
    )

    default_page_size: int = Field(
        default=10,
        ge=1,
        validation_alias=AliasChoices("TODO_DEFAULT_PAGE_SIZE", "default_page_size"),
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        validation_alias=AliasChoices("TODO_MAX_PAGE_SIZE", "max_page_size"),
    )
    subscriber_queue_size: int = Field(
        default=100,
        ge=1,
        validation_alias=AliasChoices(
            "TODO_SUBSCRIBER_QUEUE_SIZE",
            "subscriber_queue_size",
        ),
    )

    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"),
    )
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "port"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["PROJECT_ROOT", "Settings", "get_settings"]
