"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# config.py lives in catalog/, the project root is one level up
_CONFIG_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _CONFIG_DIR.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / "catalog" / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Asset Catalog", description="Application name")
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Root log level", alias="LOG_LEVEL")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the API from a browser",
        alias="CORS_ORIGINS",
    )

    # Operator tokens
    secret_key: str = Field(
        ...,
        description="Secret key for operator tokens and signed storage URLs",
        alias="SECRET_KEY",
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(default=60, description="Operator token expiration in minutes")

    # Database
    database_url: str = Field(
        ...,
        description="Relational database connection URL",
        alias="DATABASE_URL",
    )

    # Object storage
    storage_path: str | None = Field(
        default=None,
        description="Base directory of the local object store (defaults to <project>/storage)",
        alias="STORAGE_PATH",
    )
    storage_public_url: str = Field(
        default="http://localhost:8000",
        description="Base URL under which signed storage URLs are served",
        alias="STORAGE_PUBLIC_URL",
    )
    intake_bucket: str = Field(default="intake", description="Bucket holding staged uploads")
    assets_bucket: str = Field(default="assets", description="Bucket holding permanent asset files")
    signed_url_expire_seconds: int = Field(default=600, description="Lifetime of signed download URLs")
    http_timeout_seconds: float = Field(default=60.0, description="Timeout for fetching signed URLs")

    # Taxonomy
    facet_sample_limit: int = Field(default=5000, description="Maximum asset rows sampled for facets")

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str:
        """Validate and normalize database URL."""
        if v is None or v == "":
            raise ValueError("DATABASE_URL is required")
        return v.strip()

    @field_validator("app_env", mode="before")
    @classmethod
    def normalize_app_env(cls, v: str) -> str:
        """Normalize app environment to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to the upper-case names logging expects."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    @field_validator("storage_public_url", mode="before")
    @classmethod
    def normalize_storage_public_url(cls, v: str) -> str:
        """Drop trailing slashes so paths can be appended directly."""
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings: Application settings instance

    Example:
        ```python
        from catalog.config import get_settings

        settings = get_settings()
        print(settings.database_url)
        ```
    """
    return Settings()


# Global settings instance
settings = get_settings()
