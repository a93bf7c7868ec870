"""
Configuration Management for Xpense

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Connection settings for the external Xpense REST API."""

    model_config = SettingsConfigDict(
        env_prefix="XPENSE_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:8000/api/",
        description="Base URL of the Xpense API (endpoints are relative to it)"
    )
    token: Optional[str] = Field(
        default=None,
        description="Access token for the API session"
    )
    auth_scheme: str = Field(
        default="Bearer",
        description="Authorization header scheme sent with the token"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="HTTP timeout for a single request"
    )
    reference_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for reference-data lookups on transport errors"
    )

    @field_validator('base_url')
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """Relative endpoints like 'transactions/' need a trailing slash to join."""
        return v if v.endswith("/") else v + "/"


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )

    # Attachment limits
    max_attachment_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum receipt image size in MB"
    )
    allowed_attachment_types: str = Field(
        default="image/jpeg,image/png,image/webp",
        description="Comma-separated list of accepted attachment MIME types"
    )

    @property
    def allowed_attachment_types_list(self) -> list[str]:
        """Get allowed attachment types as a list."""
        return [t.strip().lower() for t in self.allowed_attachment_types.split(",") if t.strip()]

    @property
    def max_attachment_size_bytes(self) -> int:
        """Get max attachment size in bytes."""
        return self.max_attachment_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries for sections that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("api", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
