"""Configuration management for Taskboard."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="TASKBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "Taskboard"
    debug: bool = False

    # Paths
    data_dir: Path = Path("data")

    # Database
    database_url: str = "sqlite+aiosqlite:///data/taskboard.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Identity is forwarded by the gateway; the API key guards the service itself.
    # Set TASKBOARD_API_KEY to require it on every request.
    api_key: str | None = None
    allowed_roles: set[str] = {"user", "admin"}

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    # Rate limiting (requests per minute)
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/minute"  # Reads
    rate_limit_writes: str = "60/minute"  # Creates, updates, deletes

    # CORS (Cross-Origin Resource Sharing)
    cors_enabled: bool = True
    cors_allow_origins: list[str] = []  # Empty = same-origin only; use ["*"] for any origin
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = ["*"]
    cors_allow_credentials: bool = False
    cors_max_age: int = 600  # Preflight cache duration in seconds

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

    @model_validator(mode="after")
    def check_page_sizes(self):
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError("default_page_size must be between 1 and max_page_size")
        return self

    def setup_directories(self) -> None:
        """Ensure the data directory exists for file-backed SQLite."""
        if self.database_url.startswith("sqlite") and ":memory:" not in self.database_url:
            self.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    settings.setup_directories()
    return settings
