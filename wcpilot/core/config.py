"""
wcpilot/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, provider endpoint, secrets, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="wcpilot",
        description="MongoDB database name"
    )
    MONGODB_CONNECT_RETRIES: int = Field(
        default=3,
        description="Startup connection attempts before giving up"
    )

    # Evolution (messaging provider)
    EVOLUTION_API_URL: str = Field(
        default="https://evo.wcpilot.me",
        description="Messaging provider base URL"
    )
    EVOLUTION_API_KEY: Optional[str] = Field(
        default=None,
        description="Shared demo credential, only used in shared-credential mode"
    )
    EVOLUTION_SHARED_CREDENTIAL: bool = Field(
        default=False,
        description="Fall back to EVOLUTION_API_KEY for tenants without their own key"
    )
    EVOLUTION_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Provider request timeout in seconds"
    )

    # Plans and usage
    SUBSCRIPTION_PERIOD_DAYS: int = Field(
        default=30,
        description="Length of a billing period in days"
    )
    MESSAGE_METERING_ENABLED: bool = Field(
        default=False,
        description="Count sent messages against the plan's monthly cap"
    )

    # Auth tokens
    JWT_SECRET: str = Field(
        default="change-me-in-production",
        description="Secret used to sign access tokens"
    )
    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="Access token signing algorithm"
    )
    JWT_EXPIRE_DAYS: int = Field(
        default=7,
        description="Access token lifetime in days"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: str, info: ValidationInfo) -> str:
        """Ensure the signing secret is changed in production."""
        if info.data.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("JWT_SECRET must be changed in production environment")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def shared_provider_api_key(self) -> Optional[str]:
        """The fallback provider key, or None outside shared-credential mode."""
        if self.EVOLUTION_SHARED_CREDENTIAL:
            return self.EVOLUTION_API_KEY
        return None


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.EVOLUTION_API_URL:
        errors.append("EVOLUTION_API_URL is required")

    if settings.EVOLUTION_SHARED_CREDENTIAL and not settings.EVOLUTION_API_KEY:
        errors.append("EVOLUTION_API_KEY is required when EVOLUTION_SHARED_CREDENTIAL is enabled")

    if settings.MONGODB_CONNECT_RETRIES < 1:
        errors.append("MONGODB_CONNECT_RETRIES must be at least 1")

    if settings.EVOLUTION_TIMEOUT_SECONDS <= 0:
        errors.append("EVOLUTION_TIMEOUT_SECONDS must be positive")

    # Production-specific validations
    if settings.is_production:
        if settings.EVOLUTION_SHARED_CREDENTIAL:
            errors.append("EVOLUTION_SHARED_CREDENTIAL must be disabled in production")
        if settings.JWT_SECRET == "change-me-in-production":
            errors.append("JWT_SECRET must be changed in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
