"""Engine configuration, read from the environment (and ``.env``)."""

from functools import lru_cache

from cryptography.fernet import Fernet
from pydantic import field_validator
from pydantic_settings import BaseSettings

WORKFLOW_STORE_BACKENDS = ("sql", "memory")


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # API
    APP_NAME: str = "Workflow Execution Engine"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, testing, staging, production

    # Database (used when WORKFLOW_STORE is "sql")
    DATABASE_URL: str = "sqlite+aiosqlite:///./workflows.db"
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Where workflows, credentials and runs live: "sql" or "memory"
    WORKFLOW_STORE: str = "sql"

    # Fernet key for stored user credentials; required in production
    ENCRYPTION_KEY: str = ""

    # Seconds before utilities.http requests give up
    HTTP_MODULE_TIMEOUT: float = 30.0

    # POST /workflows/execute-test (never available in production)
    ALLOW_TEST_EXECUTION: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    @field_validator("WORKFLOW_STORE", "LOG_FORMAT", "ENVIRONMENT", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def uses_sql_store(self) -> bool:
        """Whether runs are persisted through DATABASE_URL."""
        return self.WORKFLOW_STORE == "sql"

    @property
    def test_execution_enabled(self) -> bool:
        return self.ALLOW_TEST_EXECUTION and not self.is_production

    def validate_secrets(self) -> None:
        """Check the credential key before the app starts serving.

        Raises:
            RuntimeError: If production has no ENCRYPTION_KEY, or the key set
                is not a valid Fernet key
        """
        if not self.ENCRYPTION_KEY:
            if self.is_production:
                raise RuntimeError(
                    "CRITICAL: ENCRYPTION_KEY environment variable must be set in production. "
                    "Stored credentials cannot be decrypted without it."
                )
            return
        try:
            Fernet(self.ENCRYPTION_KEY.encode())
        except ValueError as e:
            raise RuntimeError(f"ENCRYPTION_KEY is not a valid Fernet key: {e}") from e

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get engine settings.

    Cached; call ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings()
