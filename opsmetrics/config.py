"""
Configuration management using pydantic-settings.
Service settings loaded from environment variables (12-factor app).

Engine code never reads these settings directly; the HTTP service uses them to
seed the analysis configuration handed to the orchestrator.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=False, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Engine defaults for the service-level orchestrator
    default_platform_max_alerts: int = Field(
        default=10, ge=0, description="Max platform alerts per analysis"
    )
    default_operations_max_alerts: int = Field(
        default=8, ge=0, description="Max operational alerts per analysis"
    )
    labor_cost_target: float = Field(
        default=0.30, ge=0.0, le=1.0, description="Target labor cost ratio"
    )

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")
    testing: bool = Field(default=False, description="Testing mode (plain console logs)")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
