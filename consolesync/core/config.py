"""
Configuration management for consolesync.

Provides centralized, validated configuration from environment variables
with proper type checking and defaults.
"""

from __future__ import annotations

from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiConfig(BaseSettings):
    """Remote REST API configuration."""

    base_url: str = Field(default="https://api-dev.overinspect.com.br", alias="API_BASE_URL")
    token: Optional[str] = Field(default=None, alias="API_TOKEN")

    # Request executor policy
    retries: int = Field(default=0, ge=0, alias="REQUEST_RETRIES")
    retry_delay_ms: int = Field(default=300, ge=0, alias="RETRY_DELAY_MS")
    timeout: float = Field(default=30.0, gt=0, alias="REQUEST_TIMEOUT")

    default_per_page: int = Field(default=20, ge=1, alias="DEFAULT_PER_PAGE")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")


class AttachmentConfig(BaseSettings):
    """Attachment upload endpoints."""

    upload_path: str = Field(default="/admin/attachment/upload", alias="ATTACHMENT_UPLOAD_PATH")
    delete_path: str = Field(default="/admin/attachment", alias="ATTACHMENT_DELETE_PATH")
    download_path: str = Field(
        default="/admin/attachment/download", alias="ATTACHMENT_DOWNLOAD_PATH"
    )
    parent_kind: str = Field(default="service_order", alias="ATTACHMENT_PARENT_KIND")

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    environment: str = Field(default="production", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    api: ApiConfig = Field(default_factory=ApiConfig)
    attachments: AttachmentConfig = Field(default_factory=AttachmentConfig)

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes")
        return bool(v)

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        # Nested configs read the process environment, not the env file
        load_dotenv()
        settings = Settings()
    return settings


def validate_required_settings() -> List[str]:
    """
    Validate that the settings needed to talk to the API are present.

    Returns:
        List of missing required settings
    """
    missing = []
    try:
        config = get_settings()
        if not config.api.base_url:
            missing.append("API_BASE_URL")
        if not config.api.token:
            missing.append("API_TOKEN")
    except Exception as e:
        missing.append(f"Configuration error: {e}")

    return missing


def print_configuration_summary():
    """Print a summary of the current configuration for debugging."""
    try:
        config = get_settings()
        print("=== consolesync Configuration Summary ===")
        print(f"Environment: {config.environment}")
        print(f"Debug Mode: {config.debug}")
        print()
        print(f"API Base URL: {config.api.base_url}")
        print(f"API Token: {'✓' if config.api.token else '✗'}")
        print(f"Retries: {config.api.retries} (delay {config.api.retry_delay_ms} ms)")
        print(f"Timeout: {config.api.timeout}s")
        print(f"Default Page Size: {config.api.default_per_page}")
        print()
        print("Attachments:")
        print(f"  Upload Slot Path: {config.attachments.upload_path}")
        print(f"  Parent Kind: {config.attachments.parent_kind}")
        print("=" * 40)
    except Exception as e:
        print(f"Error loading configuration: {e}")
