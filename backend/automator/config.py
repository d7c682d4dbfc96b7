"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./automator.db",
        description="Database connection URL"
    )

    # === API ===
    internal_api_key: Optional[str] = Field(
        default=None,
        description="Shared API key for scheduler and management routes"
    )
    strava_webhook_verify_token: Optional[str] = Field(default=None)

    # === Processing queue ===
    queue_delay_interval: int = Field(
        default=120, gt=0,
        description="Seconds a queued activity waits before it can be processed"
    )
    queue_batch_size: int = Field(default=10, gt=0)
    queue_max_retry: int = Field(default=3, gt=0)
    queue_poll_interval: int = Field(
        default=30, gt=0,
        description="Seconds between background queue checks"
    )

    # === FTP ===
    ftp_weeks: int = Field(default=14, gt=0, description="FTP lookback window")
    ftp_since_last_hours: int = Field(
        default=24, ge=0,
        description="Minimum hours between automatic FTP updates"
    )
    ftp_idle_loss_per_week: float = Field(default=0.005, ge=0, lt=1)

    # === Plans ===
    free_max_recipes: int = Field(default=5, gt=0)
    free_batch_days: int = Field(default=30, gt=0)
    pro_batch_days: int = Field(default=365, gt=0)

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    def batch_days_for(self, is_pro: bool) -> int:
        """Maximum batch processing lookback for the given plan."""
        return self.pro_batch_days if is_pro else self.free_batch_days

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
