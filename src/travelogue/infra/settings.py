"""
Application settings for Travelogue.

This module defines all configuration settings for Travelogue using Pydantic BaseSettings.
Settings are read once at process start and turned into a ``RuntimeConfig``
(see ``travelogue.infra.backend``); nothing else reads the environment.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings using Pydantic BaseSettings."""

    # ORM backend
    database_url: str = Field(default="sqlite:///./travelogue.db", alias="DATABASE_URL")
    echo_sql: bool = Field(default=False, alias="ECHO_SQL")

    # Direct-SQL backend; only bound when a path is configured
    catalog_sql_path: str | None = Field(default=None, alias="CATALOG_SQL_PATH")
    sql_pool_size: int = Field(default=5, alias="SQL_POOL_SIZE")
    sql_timeout: float = Field(default=30.0, alias="SQL_TIMEOUT")

    env: str = Field(default="dev", alias="ENV")  # dev|prod|test
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Side effects
    cache_retry_attempts: int = Field(default=3, alias="CACHE_RETRY_ATTEMPTS")
    cache_retry_base_delay: float = Field(default=0.1, alias="CACHE_RETRY_BASE_DELAY")
    audit_actor: str = Field(default="system", alias="AUDIT_ACTOR")
    side_effects_async: bool = Field(default=False, alias="SIDE_EFFECTS_ASYNC")

    # HTTP
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.env.lower() in ("prod", "production")


def _resolve_env_file() -> str | None:
    # 1) Explicit override
    explicit = os.getenv("TRAVELOGUE_ENV_FILE")
    if explicit and Path(explicit).is_file():
        return explicit

    # 2) CWD .env
    cwd_env = Path.cwd() / ".env"
    if cwd_env.is_file():
        return str(cwd_env)
    return None


def load_settings(**overrides) -> Settings:
    """Build settings from the best-effort ``.env`` discovery plus explicit overrides."""
    env_file = _resolve_env_file()
    if env_file:
        return Settings(_env_file=env_file, **overrides)  # type: ignore[call-arg]
    return Settings(**overrides)
