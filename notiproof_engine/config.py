"""Runtime settings for the engine and its API adapter."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Blending defaults
    default_category: str = "saas"
    default_requested_count: int = 10

    # Read windows
    analytics_window_days: int = 7
    event_window_days: int = 30

    # Queue builder
    queue_target_size: int = 15

    # Impression persistence
    impression_db_path: str = ":memory:"

    model_config = SettingsConfigDict(
        env_prefix="NOTIPROOF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
