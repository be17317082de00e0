"""
Configuration management for the page permissions backend
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required settings
    DATABASE_URL: str = Field(..., description="SQLAlchemy URL of the relational store")
    IDENTITY_JWT_SECRET: str = Field(..., description="Secret used to verify identity provider tokens")

    # Optional settings with defaults
    IDENTITY_JWT_ALGORITHM: str = Field(default="HS256", description="Identity token signing algorithm")
    IDENTITY_JWT_AUDIENCE: str = Field(default="authenticated", description="Expected 'aud' claim of identity tokens")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    MIN_PASSWORD_LENGTH: int = Field(default=8, ge=1, description="Minimum password length for created users")

    # Seed default pages and the admin role on startup when missing
    SEED_DEFAULTS: bool = Field(default=True, description="Seed default pages and roles at startup")

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            if len(self.IDENTITY_JWT_SECRET) < 32:
                raise ValueError(
                    "IDENTITY_JWT_SECRET must be at least 32 characters in production environment"
                )

            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
