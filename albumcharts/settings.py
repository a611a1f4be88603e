"""Application settings via Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Album Charts API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 4000

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "REDIS_SERVER"),
    )
    redis_max_connections: int = Field(default=10, ge=1, le=1000)
    redis_pool_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds to wait for a free pooled connection",
    )
    redis_socket_timeout: float = Field(default=5.0, gt=0)
    redis_connect_timeout: float = Field(default=5.0, gt=0)

    @field_validator("redis_url", mode="before")
    @classmethod
    def _normalize_redis_url(cls, v: object) -> object:
        """
        Accept a bare "host:port" (the old -redisServer flag format) as well as
        a full redis:// or rediss:// URL.
        """
        if isinstance(v, str):
            s = v.strip()
            if s and "://" not in s:
                return f"redis://{s}/0"
            return s
        return v

    # Key layout
    album_key_prefix: str = "album:"
    ranking_key: str = "likes"

    # Popular albums
    popular_limit: int = Field(default=3, ge=1, le=100)
    top_k_strategy: Literal["script", "watch"] = Field(
        default="script",
        description="'script' reads the chart in one Lua call; 'watch' uses WATCH/MULTI/EXEC",
    )
    top_k_max_attempts: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Max optimistic restarts for the 'watch' strategy before giving up",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
