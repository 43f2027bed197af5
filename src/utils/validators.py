"""Configuration validation."""

from typing import List, Tuple

from src.config.constants import MIN_REACTION_LENGTH, MAX_REACTION_LENGTH
from src.config.settings import settings


class ConfigValidator:
    """Validate configuration on startup."""

    @staticmethod
    def validate_all() -> Tuple[bool, List[str]]:
        """
        Validate all configuration settings.

        Returns:
            (is_valid, error_messages)
        """
        errors = []

        # Validate database config
        if not settings.DATABASE_URL and not settings.DB_NAME:
            errors.append("DB_NAME is required when DATABASE_URL is not set")

        if settings.DB_POOL_SIZE < 1:
            errors.append("DB_POOL_SIZE must be at least 1")

        # Validate media store config - credentials come as a pair
        if bool(settings.S3_ACCESS_KEY_ID) != bool(settings.S3_SECRET_ACCESS_KEY):
            errors.append(
                "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY must be set together"
            )

        if settings.S3_ACCESS_KEY_ID and not settings.S3_BUCKET_NAME:
            errors.append("S3_BUCKET_NAME is required when S3 credentials are set")

        if not 1 <= settings.IMAGE_WEBP_QUALITY <= 100:
            errors.append("IMAGE_WEBP_QUALITY must be between 1 and 100")

        if settings.MEDIA_MAX_UPLOAD_BYTES < 1:
            errors.append("MEDIA_MAX_UPLOAD_BYTES must be positive")

        # Validate content defaults
        if not MIN_REACTION_LENGTH <= settings.DEFAULT_REACTION_LENGTH <= MAX_REACTION_LENGTH:
            errors.append(
                f"DEFAULT_REACTION_LENGTH must be between "
                f"{MIN_REACTION_LENGTH} and {MAX_REACTION_LENGTH} seconds"
            )

        # Validate inactive account sweep
        if settings.ACCOUNT_SWEEP_ENABLED:
            if settings.ACCOUNT_SWEEP_INTERVAL_SECONDS < 60:
                errors.append("ACCOUNT_SWEEP_INTERVAL_SECONDS must be at least 60")

            if settings.INACTIVE_ACCOUNT_MONTHS < 1:
                errors.append("INACTIVE_ACCOUNT_MONTHS must be at least 1")

        is_valid = len(errors) == 0
        return is_valid, errors
