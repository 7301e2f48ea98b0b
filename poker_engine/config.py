"""Engine configuration."""
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings, read from the environment (and `.env`)."""

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    json_logs: bool = False

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(
        default=10,
        ge=1,
        description="Redis pool size",
    )
    redis_socket_timeout: float = Field(
        default=3.0,
        gt=0,
        description="Redis read/write timeout in seconds",
    )
    redis_socket_connect_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Redis dial timeout in seconds",
    )
    redis_health_check_interval: int = Field(
        default=30,
        ge=0,
        description="Redis health check interval in seconds",
    )
    redis_connect_retries: int = Field(
        default=3,
        ge=1,
        description="Connection attempts at startup before giving up",
    )

    # Key space
    key_prefix: str = Field(
        default="",
        description="Optional namespace prepended to every key",
    )

    # Engine
    engine_check_interval: float = Field(
        default=2.0,
        gt=0,
        description="Seconds between room scans",
    )
    engine_min_players: int = Field(
        default=2,
        ge=2,
        description="Seated players required to start a hand",
    )
    engine_max_players: int = Field(
        default=9,
        description="Seat capacity per room",
    )
    engine_shutdown_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds allowed for graceful shutdown",
    )

    # Metrics
    metrics_port: Optional[int] = Field(
        default=None,
        description="Expose Prometheus metrics on this port when set",
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Reject empty URLs and database indexes outside 0-15."""
        if not v.strip():
            raise ValueError("redis_url cannot be empty")

        path = urlparse(v).path.lstrip("/")
        if path:
            try:
                db = int(path)
            except ValueError:
                raise ValueError(f"redis_url has invalid database: {path}")
            if db < 0 or db > 15:
                raise ValueError("redis database must be between 0 and 15")
        return v

    @model_validator(mode="after")
    def validate_player_limits(self) -> "Settings":
        if self.engine_max_players < self.engine_min_players:
            raise ValueError(
                "engine_max_players must be greater than or equal to engine_min_players"
            )
        return self

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
