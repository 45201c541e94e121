"""Application configuration loaded from environment variables."""

from __future__ import annotations

import functools

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """starhub settings.

    Every field has a default so the hub starts with no environment at all;
    override any of them via environment variables (or a ``.env`` file).
    """

    database_url: str = "sqlite:///messenger.db"
    cors_origins: str = "*"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"
    db_pool_size: int = 5

    # Relay policy: which event kinds need an accepted relationship.
    friends_only_chat: bool = False
    friends_only_calls: bool = False

    message_history_limit: int = 100

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def database_path(self) -> str:
        return self.database_url.replace("sqlite:///", "")


@functools.lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance (singleton)."""
    return Settings()
