"""
Configuration management for the Product Review client.
Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PreferenceSettings(BaseSettings):
    """User preference persistence settings."""

    store_path: Optional[str] = Field(default="data/user_preferences.json")
    grace_period_seconds: float = Field(default=5.0, ge=0.0)
    identity_timeout_seconds: float = Field(default=2.0, gt=0.0)

    model_config = SettingsConfigDict(env_prefix="PREFS_")


class NetworkSettings(BaseSettings):
    """Backend API configuration settings."""

    base_url: str = Field(default="http://localhost:8080/")
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0.0)
    retry_max_delay: float = Field(default=30.0, ge=0.0)

    model_config = SettingsConfigDict(env_prefix="API_")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file_path: Optional[str] = Field(default=None)

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    app_name: str = Field(default="Product Review")
    app_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Sub-configurations
    preferences: PreferenceSettings = Field(default_factory=PreferenceSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ["development", "staging", "production", "test"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v.lower()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
