"""Configuration management for moodwatch."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    # Time handling
    reference_timezone: str = Field("UTC", description="Timezone used to assign messages to calendar days")

    # Streak detection
    low_sentiment_threshold: float = Field(4.0, description="Daily mean below this counts as a low day")
    streak_min_length: int = Field(3, description="Minimum consecutive low days for a streak")
    streak_window_days: int = Field(7, description="Lookback for streak detection")

    # Trend analysis
    trend_window_days: int = Field(5, description="Lookback for trend slope")
    trend_min_points: int = Field(3, description="Minimum daily points for a trend")
    trend_decline_slope: float = Field(-0.3, description="Slope below this is a decline")
    trend_decline_mean: float = Field(6.0, description="Declines only count below this mean")
    trend_min_messages_per_day: int = Field(1, description="Days with fewer messages are ignored by the trend")

    # User risk
    user_window_days: int = Field(7, description="Lookback for per-user scoring")
    user_mean_threshold: float = Field(4.5, description="At-risk mean sentiment ceiling")
    user_negative_pct_threshold: float = Field(30.0, description="At-risk negative share floor (percent)")

    # Channel summaries and dashboard
    summary_window_days: int = Field(7, description="Lookback for channel summaries")
    daily_trend_days: int = Field(14, description="Lookback for the daily mood series")
    weekly_trend_weeks: int = Field(4, description="Lookback for the weekly mood series")

    # Pipeline
    max_workers: int = Field(4, description="Worker threads for per-channel analysis")

    # Message store
    message_store_backend: str = Field("memory", description="One of: memory, file, http")
    message_store_path: str = Field("", description="JSON or CSV snapshot for the file backend")
    message_store_url: str = Field("", description="Base URL for the http backend")
    request_timeout: float = Field(30.0, description="HTTP timeout in seconds")
    max_retries: int = Field(3, description="Maximum retry attempts")
    retry_delay: float = Field(1.0, description="Base retry delay in seconds")
    retry_backoff: float = Field(2.0, description="Retry backoff multiplier")

    # Alerts
    actions_playbook_path: str = Field("", description="Optional YAML file overriding manager actions")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "MOODWATCH_"


# Global settings instance
settings = Settings()
