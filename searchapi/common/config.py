from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SEARCHAPI_", case_sensitive=False)

    # backing engine
    engine_backend: Literal["elasticsearch", "memory"] = "elasticsearch"
    elasticsearch_url: str = "http://elasticsearch:9200"
    index_name: str = "documents"
    http_timeout_seconds: float = 10.0

    # startup bootstrap
    connect_retry_delay_seconds: float = 3.0
    connect_max_attempts: int = 0  # 0 = retry forever

    # pagination
    default_skip: int = 0
    default_take: int = 10


settings = Settings()
