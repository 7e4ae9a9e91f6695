"""
Configuration management for subscription-feed.

Uses Pydantic for validation and pydantic-settings for environment variable support.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Subscription database configuration.

    Only SQLite is supported. Use ``:memory:`` for a throwaway database.
    Environment variables: DB_PATH, DB_ECHO.
    """

    model_config = SettingsConfigDict(env_prefix="DB_")

    path: str = Field(default="data/subscription_feed.db", description="Database file path (SQLite)")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @field_validator("path")
    @classmethod
    def ensure_directory_exists(cls, v: str) -> str:
        """Ensure the database directory exists."""
        if v != ":memory:" and not v.startswith("sqlite://"):
            Path(v).parent.mkdir(parents=True, exist_ok=True)
        return v


class AggregatorConfig(BaseSettings):
    """Feed aggregation configuration."""

    model_config = SettingsConfigDict(env_prefix="AGGREGATOR_")

    # Items uploaded before (now - cutoff_weeks), truncated to midnight, are dropped
    cutoff_weeks: int = Field(default=4, ge=1, le=52, description="Age window in weeks")

    # Per-subscription fetching
    parallel_fetch: bool = Field(default=True, description="Fetch subscriptions concurrently")
    max_workers: int = Field(default=4, ge=1, le=32, description="Maximum concurrent fetches")


class SchedulerConfig(BaseSettings):
    """Refresh scheduler configuration."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    enabled: bool = Field(default=True, description="Enable scheduler")
    timezone: str = Field(default="UTC", description="Scheduler timezone")

    refresh_interval_minutes: int = Field(default=30, ge=1, description="Periodic refresh interval")

    # Job execution settings
    max_workers: int = Field(default=2, ge=1, le=20, description="Maximum concurrent refresh jobs")
    misfire_grace_time: int = Field(default=300, ge=0, description="Misfire grace time in seconds")
    coalesce: bool = Field(default=True, description="Coalesce misfired jobs")


class FetcherConfig(BaseSettings):
    """Source fetcher configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    # HTTP settings
    timeout_seconds: int = Field(default=30, ge=1, le=300, description="Request timeout")
    user_agent: str = Field(
        default="subscription-feed/0.1.0",
        description="User-Agent header"
    )

    # Retry settings
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_delay_seconds: int = Field(default=2, ge=0)

    # Follow redirects
    follow_redirects: bool = Field(default=True)
    max_redirects: int = Field(default=5, ge=0, le=20)


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_path: str = Field(default="logs/subscription_feed.log", description="Log file path")
    rotation: str = Field(default="10 MB", description="Log rotation size")
    retention: str = Field(default="14 days", description="Log retention period")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FEED_",
        case_sensitive=False,
    )

    # Application
    version: str = Field(default="0.1.0", description="Application version")
    app_name: str = Field(default="subscription-feed", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    # Sub-configurations
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


_NESTED_CONFIGS = {
    "database": DatabaseConfig,
    "aggregator": AggregatorConfig,
    "scheduler": SchedulerConfig,
    "fetcher": FetcherConfig,
    "logging": LoggingConfig,
}

# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Nested sections (``aggregator``, ``fetcher``, ...) are built through their
    own settings classes so environment variables still fill unset fields.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.
    """
    import yaml

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with yaml_file.open("r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    main_config = {}
    nested_configs = {}

    for key, value in config_dict.items():
        if key in _NESTED_CONFIGS:
            nested_configs[key] = value
        else:
            main_config[key] = value

    for key, config_class in _NESTED_CONFIGS.items():
        if key in nested_configs:
            nested_configs[key] = config_class(**(nested_configs[key] or {}))
        else:
            nested_configs[key] = config_class()

    main_config.update(nested_configs)
    return Config(**main_config)


def reload_config() -> Config:
    """Reload configuration from environment and YAML files."""
    global _config
    _config = None

    config_yaml = Path("config/config.yaml")
    if config_yaml.exists():
        _config = load_config_from_yaml(str(config_yaml))
    else:
        _config = Config()

    return _config
