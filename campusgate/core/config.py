"""
Application configuration management using Pydantic Settings.
"""
import json
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    APP_NAME: str = "CampusGate"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production|test)$")

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "CampusGate API"
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:8000"]
    )

    # Security
    SECRET_KEY: str = Field(..., min_length=32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    SESSION_COOKIE_NAME: str = "campusgate_session"

    # Route guard
    PUBLIC_ENTRY_ROUTE: str = "/"
    DASHBOARD_ROUTE: str = "/dashboard"
    GUARD_SESSION_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Tenant feature defaults
    DEFAULT_DISABLED_FEATURES: Annotated[List[str], NoDecode] = Field(
        default=[
            "transportManagement",
            "hostelManagement",
            "disciplineTracking",
            "healthRecords",
        ]
    )
    BOOTSTRAP_TENANT_IDS: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Sentry
    SENTRY_DSN: Optional[str] = None
    SENTRY_ENVIRONMENT: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    @field_validator("BACKEND_CORS_ORIGINS", "DEFAULT_DISABLED_FEATURES", "BOOTSTRAP_TENANT_IDS", mode="before")
    @classmethod
    def split_comma_separated(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and v.strip().startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()


# Create a settings instance for easy import
settings = get_settings()
