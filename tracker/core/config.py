"""Configuration management for tracker."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="data/tracker.db", description="Path to the SQLite database file")

    # Session Configuration
    secret_key: str = Field(default="dev-secret-change-me", description="Secret used to sign session tokens")
    session_max_age_seconds: int = Field(
        default=60 * 60 * 24 * 30, description="Maximum age of a signed session token (in seconds)"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    environment: str = Field(default="development", description="Deployment environment name")

    @property
    def is_production(self) -> bool:
        """Return True when running in the production environment."""
        return self.environment.lower() == "production"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # Task defaults applied when a draft omits them
    DEFAULT_TARGET_DAYS: int = 30
    DEFAULT_TARGET_VALUE: float = 100
    DEFAULT_UNIT: str = "units"

    # Text limits
    DESCRIPTION_MAX_LENGTH: int = 1000

    # Client Configuration
    API_TIMEOUT_SECONDS: float = 10.0
    API_PREFIX: str = "/api"

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_NOT_FOUND: int = 404
    HTTP_UNPROCESSABLE: int = 422

    # Sessions
    SESSION_COOKIE_NAME: str = "session"
    SESSION_SALT: str = "tracker-session"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
