"""
Cache client configuration using Pydantic settings.

Usage:
    from rediscache.config import get_settings
    settings = get_settings()
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Cache client settings loaded from environment variables and .env file.

    Pool sizing follows the usual object-pool knobs:
        - REDIS_MAX_ACTIVE: connections that may exist at once
        - REDIS_MAX_WAIT: seconds a caller waits for a free connection
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Redis
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_db: int = Field(default=0, validation_alias="REDIS_DB")
    redis_password: Optional[str] = Field(default=None, validation_alias="REDIS_PASSWORD")
    redis_timeout: float = Field(default=2.0, gt=0, validation_alias="REDIS_TIMEOUT")

    # Pool
    redis_max_active: int = Field(default=8, ge=1, validation_alias="REDIS_MAX_ACTIVE")
    redis_max_wait: float = Field(default=2.0, ge=0, validation_alias="REDIS_MAX_WAIT")

    # Entries
    cache_default_expire: int = Field(default=60 * 60 * 24, ge=0, validation_alias="CACHE_DEFAULT_EXPIRE")

    @property
    def redis_url(self) -> str:
        """Construct Redis URL from components."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"


@lru_cache
def get_settings() -> Settings:
    """Get cached cache client settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
