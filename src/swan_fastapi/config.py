"""Library configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from swan_fastapi.constants import (
    DEFAULT_API_PREFIX,
    DEFAULT_FALLBACK_PATH,
    DEFAULT_JWT_ALGORITHM,
    DEFAULT_TOKEN_EXPIRATION_MINUTES,
    DEFAULT_TOKEN_PATH,
)


class Settings(BaseSettings):
    """Settings loaded from environment variables prefixed with ``SWAN_``."""

    model_config = SettingsConfigDict(
        env_prefix="SWAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: str = "development"  # development, staging, production

    # Logging
    log_level: str = "INFO"
    json_logs: bool | None = None

    # Token issuance
    token_path: str = DEFAULT_TOKEN_PATH
    token_expiration_minutes: int = DEFAULT_TOKEN_EXPIRATION_MINUTES
    force_https: bool = True
    jwt_algorithm: str = DEFAULT_JWT_ALGORITHM

    # Routing
    api_prefix: str = DEFAULT_API_PREFIX
    fallback_path: str = DEFAULT_FALLBACK_PATH

    # Errors
    expose_exception_details: bool = True
    api_docs_base_url: str = "https://api.example.com"

    @field_validator("token_expiration_minutes")
    @classmethod
    def validate_token_expiration(cls, v: int) -> int:
        """Reject non-positive token lifetimes.

        Args:
            v: Expiration in minutes

        Returns:
            The validated expiration

        Raises:
            ValueError: If the expiration is zero or negative
        """
        if v <= 0:
            raise ValueError("SWAN_TOKEN_EXPIRATION_MINUTES must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the configured log level name."""
        return v.upper()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def use_json_logs(self) -> bool:
        """JSON logs unless explicitly disabled; defaults to production only."""
        if self.json_logs is None:
            return self.is_production
        return self.json_logs


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
