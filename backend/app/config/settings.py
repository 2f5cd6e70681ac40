import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List

env = os.getenv("APP_ENV", "development")
env_file = f".env.{env}"

class Settings(BaseSettings):
    # postgresql+asyncpg://... in deployment
    database_url: str = "sqlite+aiosqlite:///./allergies.db"
    sql_echo: bool = False
    # CORS origins can be overridden via CORS_ORIGINS env var (JSON list or comma-separated)
    cors_origins: List[str] = Field(default=["http://localhost:3000"])
    log_level: str = "INFO"

    # Concept attached to free-text allergens that have no coded concept
    allergen_other_non_coded_uuid: str = "5622AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"

    model_config = SettingsConfigDict(
        env_file=env_file,
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
