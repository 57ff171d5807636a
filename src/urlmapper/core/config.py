from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = "dev"
    host: str = "0.0.0.0"
    port: int = 8000

    # Store
    store_backend: Literal["redis", "sql"] = "redis"
    # required: table name or key namespace holding the mappings
    store_name: str = Field(min_length=1)

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Database
    database_url: str = "sqlite:///./urlmapper.db"

    # Short codes
    short_code_length: int = Field(default=8, ge=4, le=32)
    max_create_attempts: int = Field(default=5, ge=1)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
