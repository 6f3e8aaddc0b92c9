"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import Annotated, List
from pydantic_settings import BaseSettings, NoDecode
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./runtracker.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Tracking ===
    snapshot_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How often an active session is snapshotted for recovery"
    )
    positioning_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout handed to the positioning source for permission/first fix"
    )

    # === Recovery ===
    snapshot_max_age_hours: float = Field(
        default=24.0,
        description="Snapshots older than this are discarded, never offered"
    )
    min_recoverable_samples: int = Field(
        default=10,
        description="Snapshots with this many samples or fewer are not offered"
    )

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
