"""
Configuration and settings for the lecture reports service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)

    # Database (MySQL expected). DATABASE_URL wins over the DB_* parts.
    database_url: Optional[str] = Field(default=None)
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=3306)
    db_user: str = Field(default="root")
    db_password: str = Field(default="")
    db_name: str = Field(default="lecture_reports")
    db_pool_size: int = Field(default=5, ge=1)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    log_level: str = Field(default="INFO")

    def sqlalchemy_url(self) -> URL | str:
        """Return the store URL, assembling it from the DB_* parts if needed."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
