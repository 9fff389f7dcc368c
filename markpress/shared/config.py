"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from typing import List
from typing import Optional

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment-based configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # Key-value store
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the key-value store",
    )
    test_redis_url: Optional[str] = Field(
        default=None,
        description="Test Redis connection URL",
    )
    store_namespace: str = Field(
        default="",
        description="Optional key prefix applied to every store key",
    )

    # Identity provider
    identity_url: str = Field(
        default="http://localhost:9999",
        description="Base URL of the identity provider (GoTrue-compatible)",
    )
    identity_service_key: str = Field(
        default="",
        description="Service key used for admin calls to the identity provider",
    )
    identity_timeout: float = Field(
        default=10.0,
        description="Identity provider request timeout in seconds",
    )

    # Web Application
    api_prefix: str = Field(
        default="",
        description="Route prefix the API is mounted under",
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )
    web_host: str = Field(
        default="0.0.0.0",
        description="Web server host",
    )
    web_port: int = Field(
        default=8000,
        description="Web server port",
    )
    verbose_errors_enabled: bool = Field(
        default=True,
        description="Enable verbose error messages (disable in production)",
    )

    # Content
    default_page_size: int = Field(
        default=12,
        ge=1,
        description="Blogs per page when no limit is given",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        description="Largest accepted page size",
    )
    popular_tags_limit: int = Field(
        default=20,
        ge=1,
        description="Number of tags returned by the popular tags endpoint",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = {"development", "testing", "production"}
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        """Normalize the route prefix to '' or '/something'."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = f"/{v}"
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def effective_redis_url(self) -> str:
        """Get the effective Redis URL based on environment."""
        if self.is_testing and self.test_redis_url:
            return self.test_redis_url
        return self.redis_url


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def override_settings(**kwargs) -> Settings:
    """Create a settings instance with overrides (useful for testing)."""
    return Settings(**kwargs)
