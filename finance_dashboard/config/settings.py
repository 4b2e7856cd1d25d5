"""
Configuration Management for the Finance Dashboard

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every value has a working default so the dashboard can start against the
hosted finance API without any environment set up.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FinanceApiSettings(BaseSettings):
    """Remote finance API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="https://backend-project-pemuda.onrender.com/api/v1",
        description="Base URL of the finance API (without trailing slash)"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Timeout for regular requests"
    )
    upload_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        le=600,
        description="Timeout for document uploads"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Finance API base URL must be http(s): {v}")
        return v.rstrip("/")


class QuerySettings(BaseSettings):
    """Request cache and retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="QUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    stale_time_seconds: float = Field(
        default=5 * 60,
        ge=0,
        description="How long fetched data is considered fresh"
    )
    gc_time_seconds: float = Field(
        default=10 * 60,
        ge=0,
        description="How long unused cache entries are kept"
    )
    retry_base_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="First retry delay (doubles on each retry)"
    )
    retry_max_delay_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound for a single retry delay"
    )
    network_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts for network and timeout failures"
    )
    default_max_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Total attempts for any other failure"
    )


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

    # Local credential store
    credentials_path: str = Field(
        default=str(Path.home() / ".finance_dashboard" / "credentials.json"),
        description="JSON file holding the bearer token"
    )
    token_key: str = Field(
        default="token",
        description="Key of the bearer token inside the credential store"
    )

    # Document upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_document_types: str = Field(
        default="application/pdf,image/jpeg,image/png,image/webp",
        description="Comma-separated list of accepted document MIME types"
    )

    @property
    def supported_types_list(self) -> list[str]:
        """Get supported MIME types as a list."""
        return [t.strip().lower() for t in self.supported_document_types.split(",") if t.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def finance_api(self) -> FinanceApiSettings:
        return FinanceApiSettings()

    @property
    def query(self) -> QuerySettings:
        return QuerySettings()

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

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries for the sections that failed. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("finance_api", "query", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
