"""Application settings and configuration management."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Database Configuration
    DATABASE_URL: Optional[str] = None  # Full URL (overrides DB_* components if set)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "reactlyve"
    DB_USER: str = "reactlyve_user"
    DB_PASSWORD: Optional[str] = ""
    DB_SSLMODE: Optional[str] = None  # e.g., "require" for managed Postgres
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Media Store (S3-compatible)
    S3_BUCKET_NAME: Optional[str] = None
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT: Optional[str] = None  # e.g., MinIO / Backblaze endpoint
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_PUBLIC_BASE_URL: Optional[str] = None  # CDN prefix for public URLs
    MEDIA_MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024
    IMAGE_WEBP_QUALITY: int = 80

    # Content Defaults
    FRONTEND_URL: str = "http://localhost:5173"
    DEFAULT_REACTION_LENGTH: int = 15  # seconds

    # Inactive Account Sweep
    ACCOUNT_SWEEP_ENABLED: bool = True
    ACCOUNT_SWEEP_INTERVAL_SECONDS: int = 86400  # daily
    INACTIVE_ACCOUNT_MONTHS: int = 12

    # Development Settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "logs/app.log"  # Empty string disables file logging

    @property
    def database_url(self) -> str:
        """Get database URL for SQLAlchemy.

        If DATABASE_URL is set, use it directly (standard for PaaS platforms).
        Otherwise, assemble from individual DB_* components.
        Appends ?sslmode= if DB_SSLMODE is set.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if self.DB_PASSWORD:
            url = f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        else:
            url = f"postgresql://{self.DB_USER}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

        if self.DB_SSLMODE:
            url += f"?sslmode={self.DB_SSLMODE}"
        return url


# Global settings instance
settings = Settings()
