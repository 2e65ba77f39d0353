# src/file_manager_api/settings.py
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Values passed to the constructor (used by tests and `create_app`)
    2. Environment variables
    3. .env file (if exists)
    4. Default values in this class (lowest priority)

    Usage:
        from file_manager_api.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="file-manager-api",
        description="Application name"
    )

    # Object storage
    s3_bucket_name: str = Field(
        default="file-manager",
        description="Bucket holding every managed file"
    )

    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL that object keys are appended to, e.g. an R2 public bucket domain"
    )

    paginate_listing: bool = Field(
        default=False,
        description="Follow continuation tokens when listing instead of returning a single page"
    )

    # Provider connection, consumed by the storage binding only
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL",
        description="S3-compatible endpoint, e.g. https://<account>.r2.cloudflarestorage.com"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    # HTTP
    cors_allow_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed to call the API from a separately hosted frontend"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Keys are joined with a single `/`, so the base URL must not end with one."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    def object_url(self, key: str) -> str:
        """Publicly resolvable URL of the object stored under `key`."""
        return f"{self.public_base_url}/{key}"

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
