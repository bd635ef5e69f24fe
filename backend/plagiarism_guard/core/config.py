"""Runtime configuration helpers.

Classes:
    Settings: Pydantic settings model capturing environment-driven defaults.

Functions:
    get_settings(): Return a cached Settings instance for dependency injection.
    configure_logging(settings): Install the process-wide logging format once at startup.
"""

import logging
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_THRESHOLD_CACHE_TTL_SECONDS = 300.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Plagiarism Guard"
    database_url: str = "sqlite+aiosqlite:///./data/plagiarism_guard.db"
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = Field(default=8000, ge=1, le=65535)

    openai_api_key: SecretStr | None = None
    embedding_base_url: str | None = None
    embedding_model: str = "nomic-embed-text"
    embedding_dim: int = Field(default=768, ge=1)
    embedding_timeout_seconds: float = Field(default=30.0, gt=0)

    nats_servers: str = "nats://localhost:4222"
    submission_subject: str = "EDUSPHERE.submission.created"
    nats_queue_group: str = ""
    subscriber_queue_size: int = Field(default=64, ge=1)
    bus_connect_attempts: int = Field(default=5, ge=1)
    enable_consumer: bool = False

    plagiarism_default_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    plagiarism_default_top_k: int = Field(default=10, ge=1)
    plagiarism_max_top_k: int = Field(default=500, ge=1)
    query_timeout_seconds: float = Field(default=10.0, gt=0)
    threshold_cache_ttl_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def threshold_cache_ttl(self) -> float:
        return min(self.threshold_cache_ttl_seconds, MAX_THRESHOLD_CACHE_TTL_SECONDS)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
