"""API configuration settings.

FastAPI server, trigger secret and primary persistence backend.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """FastAPI configuration.

    Attributes:
        host: API host address.
        port: API port.
        reload: Enable auto-reload in development.
        environment: Deployment environment name.
    """

    host: str = Field(default="0.0.0.0", alias="API_HOST")
    port: int = Field(default=8000, alias="API_PORT")
    reload: bool = Field(default=False, alias="API_RELOAD")
    title: str = Field(default="Movie Bonus Sync API", alias="API_TITLE")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class TriggerSettings(BaseSettings):
    """Shared secret guarding the sync trigger.

    An unset secret is a configuration fault: the trigger refuses every
    request instead of running unauthenticated.

    Attributes:
        cron_secret: Secret expected as Bearer token or ``secret`` query.
    """

    cron_secret: str | None = Field(default=None, alias="CRON_SECRET")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        """Check if the trigger secret is configured."""
        return bool(self.cron_secret)


class BackendSettings(BaseSettings):
    """Primary persistence backend (external save service).

    Attributes:
        url: Base URL of the backend, fallback-only mode when unset.
        token: Bearer token sent to the backend.
        timeout: Bound on one save call, in seconds.
    """

    url: str | None = Field(default=None, alias="PYTHON_BACKEND_URL")
    token: str | None = Field(default=None, alias="PYTHON_BACKEND_TOKEN")
    timeout: float = Field(default=10.0, alias="BACKEND_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        """Check if a primary backend endpoint is configured."""
        return bool(self.url)
