"""Application configuration using Pydantic settings."""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from halfsuit.constants import (
    GAME_RETENTION_SECONDS,
    MAX_PLAYERS,
    MIN_PLAYERS,
    OUTBOX_LIMIT,
    SEND_TIMEOUT_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    environment: str = Field(default="development", description="Environment")
    frontend_url: str = Field(default="http://localhost:5173", description="Frontend URL")

    # Storage
    storage_backend: Literal["memory", "mongo"] = Field(
        default="memory", description="Game state store backend"
    )
    storage_timeout_seconds: float = Field(
        default=2.0, description="Upper bound for a single store operation"
    )
    storage_retry_backoff_seconds: float = Field(
        default=0.1, description="Pause before retrying a failed store operation"
    )

    # Outbound delivery
    send_timeout_seconds: float = Field(
        default=SEND_TIMEOUT_SECONDS, description="Upper bound for writing one frame to a client"
    )
    outbox_limit: int = Field(
        default=OUTBOX_LIMIT, description="Frames queued for a client before it is dropped"
    )

    # MongoDB
    mongodb_host: str = Field(default="localhost", description="MongoDB host")
    mongodb_port: int = Field(default=27017, description="MongoDB port")
    mongodb_database: str = Field(default="halfsuit", description="MongoDB database name")
    mongodb_username: Optional[str] = Field(default=None, description="MongoDB username")
    mongodb_password: Optional[str] = Field(default=None, description="MongoDB password")

    # Redis
    enable_pubsub: bool = Field(default=False, description="Publish game events to Redis")
    broker_redis_host: str = Field(default="localhost", description="Redis host")
    broker_redis_port: int = Field(default=6379, description="Redis port")
    broker_redis_password: Optional[str] = Field(default=None, description="Redis password")
    redis_db: int = Field(default=0, description="Redis database number")

    # Game Configuration
    max_players: int = Field(default=MAX_PLAYERS, description="Maximum players per game")
    min_players: int = Field(default=MIN_PLAYERS, description="Players needed to form teams")
    max_name_length: int = Field(default=32, description="Longest accepted display name")
    game_retention_seconds: float = Field(
        default=GAME_RETENTION_SECONDS, description="Seconds an ended game is kept"
    )

    @property
    def mongodb_uri(self) -> str:
        """Build MongoDB connection URI."""
        auth = ""
        if self.mongodb_username and self.mongodb_password:
            auth = f"{self.mongodb_username}:{self.mongodb_password}@"
        return f"mongodb://{auth}{self.mongodb_host}:{self.mongodb_port}"

    @property
    def redis_url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.broker_redis_password}@" if self.broker_redis_password else ""
        return f"redis://{auth}{self.broker_redis_host}:{self.broker_redis_port}/{self.redis_db}"


# Global settings instance
settings = Settings()
