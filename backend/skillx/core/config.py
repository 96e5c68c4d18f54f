"""Application configuration loaded from environment variables.

Settings for the recommendations backend, local storage, background sync,
and the local-first assessment API. Uses pydantic-settings for validation
and .env file support.
"""

from pathlib import Path

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Recommendations backend
    backend_api_url: str = "http://localhost:4000"
    backend_timeout_seconds: float = 10.0
    # Empty token means anonymous: no server progress, AuthRequired gate on submit
    backend_token: SecretStr = SecretStr("")

    # Local durable storage (browser localStorage equivalent)
    storage_path: Path = Path(".skillx/assessment-storage.json")

    # Background progress sync
    sync_max_retries: int = 3
    sync_retry_base_delay_ms: int = 500
    sync_retry_max_delay_ms: int = 8000

    # Personality step gate. None requires every catalog question answered.
    personality_min_answers: int | None = None

    # Redirect target handed to the login/signup pages
    assessment_redirect_path: str = "/career-assessment"

    # API
    # 127.0.0.1 by default: the service holds one user's assessment
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def backend_base_url(self) -> str:
        """Backend URL without a trailing slash."""
        return self.backend_api_url.rstrip("/")

    @model_validator(mode="after")
    def check_invariants(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Retry counts and delays are non-negative
        - Retry max delay is not below the base delay
        - Backend timeout is positive
        - Personality threshold, when set, is positive
        - CORS must not use a wildcard origin
        - Production must reach the backend over HTTPS
        """
        if self.sync_max_retries < 0:
            msg = f"SYNC_MAX_RETRIES cannot be negative. Got: {self.sync_max_retries}"
            raise ValueError(msg)
        if self.sync_retry_base_delay_ms < 0:
            msg = (
                "SYNC_RETRY_BASE_DELAY_MS cannot be negative. "
                f"Got: {self.sync_retry_base_delay_ms}"
            )
            raise ValueError(msg)
        if self.sync_retry_max_delay_ms < self.sync_retry_base_delay_ms:
            msg = (
                "SYNC_RETRY_MAX_DELAY_MS must be >= SYNC_RETRY_BASE_DELAY_MS. "
                f"Got: {self.sync_retry_max_delay_ms} < {self.sync_retry_base_delay_ms}"
            )
            raise ValueError(msg)
        if self.backend_timeout_seconds <= 0:
            msg = (
                "BACKEND_TIMEOUT_SECONDS must be positive. "
                f"Got: {self.backend_timeout_seconds}"
            )
            raise ValueError(msg)
        if self.personality_min_answers is not None and self.personality_min_answers < 1:
            msg = (
                "PERSONALITY_MIN_ANSWERS must be at least 1 when set. "
                f"Got: {self.personality_min_answers}"
            )
            raise ValueError(msg)
        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "The assessment API forwards bearer credentials."
            )
            raise ValueError(msg)

        if self.environment == "production" and not self.backend_api_url.startswith(
            "https://"
        ):
            msg = (
                "BACKEND_API_URL must use https in production. "
                f"Got: {self.backend_api_url}"
            )
            raise ValueError(msg)
        return self


settings = Settings()
