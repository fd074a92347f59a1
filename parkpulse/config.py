"""Application configuration using pydantic-settings."""

import warnings

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULT = "change-me-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "ParkPulse"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"

    # Database: postgresql+asyncpg in production, sqlite+aiosqlite locally
    database_url: str = "sqlite+aiosqlite:///./parkpulse.db"

    # JWT identity (tokens are minted by the identity provider)
    jwt_secret_key: str = _INSECURE_JWT_DEFAULT
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 30

    # Notifications
    notifier_backend: str = "log"  # log, webhook
    notifier_webhook_url: str = ""
    notifier_timeout_seconds: float = 5.0
    notifier_sender_name: str = "ParkPulse"

    # Booking rules
    recheck_window_on_approval: bool = True

    # Frontend
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    @model_validator(mode="after")
    def _ensure_frontend_in_cors(self) -> "Settings":
        """Ensure the configured frontend_url is always in cors_origins."""
        if self.frontend_url and self.frontend_url not in self.cors_origins:
            self.cors_origins.append(self.frontend_url)
        return self

    @model_validator(mode="after")
    def _validate_secrets(self) -> "Settings":
        """Reject insecure JWT secret in production and warn in development."""
        if self.jwt_secret_key == _INSECURE_JWT_DEFAULT:
            if self.environment == "production":
                raise ValueError(
                    "JWT_SECRET_KEY must be set to the identity provider's signing secret in production."
                )
            warnings.warn(
                "Using default JWT secret, only acceptable for local development. "
                "Set JWT_SECRET_KEY in your .env file.",
                UserWarning,
                stacklevel=1,
            )
        return self

    @model_validator(mode="after")
    def _validate_notifier(self) -> "Settings":
        """The webhook backend needs somewhere to post to."""
        if self.notifier_backend not in ("log", "webhook"):
            raise ValueError(f"Unknown NOTIFIER_BACKEND '{self.notifier_backend}'. Use 'log' or 'webhook'.")
        if self.notifier_backend == "webhook" and not self.notifier_webhook_url:
            raise ValueError("NOTIFIER_WEBHOOK_URL is required when NOTIFIER_BACKEND=webhook.")
        return self

    @property
    def async_database_url(self) -> str:
        """Ensure PostgreSQL URLs use the asyncpg driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.async_database_url.startswith("sqlite")


settings = Settings()
