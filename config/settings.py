"""
Configuration settings for the Project Management API.
All sensitive values are loaded from environment variables.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "Project Management API"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # Database
    database_url: str = Field(default="")
    database_echo: bool = Field(default=False)
    db_pool_size: int = Field(default=10)
    db_max_overflow: int = Field(default=20)
    db_pool_timeout: int = Field(default=30)
    db_pool_recycle: int = Field(default=1800)

    # Auth
    jwt_secret: str = Field(default="")
    jwt_expires_in: str = Field(default="1d")
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # HTTP
    cors_origin: str = Field(default="*")
    rate_limit_window_ms: int = Field(default=900_000, gt=0)
    rate_limit_max: int = Field(default=100, gt=0)

    # Redis (rate limit storage, in-memory when empty)
    redis_url: str = Field(default="")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def cors_origins(self) -> List[str]:
        """CORS_ORIGIN split on commas ("*" allows any origin)."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the application settings."""
    return settings
