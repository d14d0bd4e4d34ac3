"""edutrack settings.

Read from environment variables (or a .env file), case-insensitive:
LOCK_BACKEND=redis, REDIS_URL=..., LOG_FORMAT=json, ...
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the progress and assessment services."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="edutrack", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )

    # Identifiers (used by the in-memory stores built in bootstrap)
    progress_id_prefix: str = Field(
        default="lp_", description="Prefix for lesson progress IDs"
    )
    submission_id_prefix: str = Field(
        default="qs_", description="Prefix for questionnaire submission IDs"
    )

    # Locking (serializes mutations per learner/lesson)
    lock_backend: Literal["memory", "redis"] = Field(
        default="memory", description="Keyed lock backend"
    )
    lock_key_prefix: str = Field(
        default="edutrack:lock", description="Prefix for lock keys"
    )
    lock_timeout_seconds: float = Field(
        default=10.0, description="Lock auto-release timeout (redis backend)"
    )
    lock_blocking_timeout_seconds: float = Field(
        default=5.0, description="Max time to wait for a lock (redis backend)"
    )

    # Redis (only used with lock_backend="redis")
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis URL for the lock backend"
    )
    redis_max_connections: int = Field(default=10, description="Connection pool size")
    redis_socket_timeout: float = Field(default=5.0, description="Socket timeout (seconds)")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Connect timeout (seconds)"
    )
    redis_retry_on_timeout: bool = Field(default=True, description="Retry commands that time out")
    redis_health_check_interval: int = Field(
        default=30, description="Seconds between connection health checks"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Console output format"
    )
    log_include_caller_info: bool = Field(
        default=False, description="Include caller info"
    )
    log_to_file: bool = Field(default=False, description="Also write JSON log files")
    log_dir: str = Field(default="logs", description="Directory for log files (log_to_file)")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Rotate log files at this size"
    )
    log_file_backup_count: int = Field(
        default=5, description="Rotated log files to keep"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def uses_redis_locks(self) -> bool:
        """Check if mutations are serialized through Redis."""
        return self.lock_backend == "redis"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
