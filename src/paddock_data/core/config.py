"""
Configuration management for Paddock Data API.

Uses Pydantic settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from urllib.parse import quote
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Application Metadata
    # ==========================================================================
    app_name: str = "Paddock Data API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", description="development, staging, production")
    log_level: str = Field(default="INFO", description="Root log level for CLI and server")

    # ==========================================================================
    # Redis Store Configuration
    # ==========================================================================
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL (redis://host:port/db). Overrides host/port/db when set.",
    )
    redis_host: str = "localhost"
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_password: Optional[str] = None
    redis_db: int = Field(default=0, ge=0)
    redis_pool_size: int = Field(default=20, ge=1, le=500)
    redis_socket_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Socket connect/read timeout in seconds",
    )
    store_round_trip_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Deadline for a single store round trip in seconds",
    )
    scan_batch_size: int = Field(default=100, ge=1, le=10_000)

    @computed_field
    @property
    def store_url(self) -> str:
        """Get the effective Redis URL."""
        if self.redis_url:
            return self.redis_url
        auth = f":{quote(self.redis_password, safe='')}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_prefix: str = "/api"
    api_docs_url: str = "/api-docs"

    # ==========================================================================
    # CORS Configuration
    # ==========================================================================
    cors_allow_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins.",
    )
    cors_allow_methods: list[str] = ["GET", "POST", "HEAD", "OPTIONS"]
    cors_allow_headers: list[str] = ["Accept", "Accept-Encoding", "Content-Type"]
    cors_allow_credentials: bool = False
    cors_expose_headers: list[str] = ["X-Process-Time"]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
