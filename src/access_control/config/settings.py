"""Configuration Settings for the Access Control Engine

Manages environment variables and application configuration.
Settings are read once by the bootstrap code and passed explicitly to the
components that need them.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ACCESS_CONTROL_",
        case_sensitive=False,
    )

    # Service info
    service_name: str = "access-control-engine"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Storage backend selection: redis (key-value), sql (relational) or memory
    storage_backend: Literal["redis", "sql", "memory"] = "memory"

    # Redis configuration
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    redis_key_prefix: str = "ac"

    @property
    def redis_url(self) -> str:
        """Construct Redis URL from components"""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # Relational database configuration
    database_url: str = "sqlite+aiosqlite:///access_control.sqlite"
    sql_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver"""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance

    Returns:
        Settings instance
    """
    return Settings()
