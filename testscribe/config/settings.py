"""Configuration management for the TestScribe reporting engine."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from testscribe.core.interfaces import ConfigProvider
from testscribe.core.types import ScreenshotMode
from testscribe.error_handling.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="TESTSCRIBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment Configuration
    environment_name: str = Field(
        default="Development", description="Name of the target test environment"
    )
    application_url: Optional[str] = Field(
        default=None, description="Base URL of the web application under test"
    )
    api_url: Optional[str] = Field(
        default=None, description="Base URL of the API under test"
    )

    # Screenshot Configuration
    screenshot_mode: ScreenshotMode = Field(
        default=ScreenshotMode.ON_FAILURE_ONLY,
        description="When to capture a diagnostic artifact at test teardown",
    )
    screenshot_dir: Optional[Path] = Field(
        default=None, description="Screenshot output directory (results directory if unset)"
    )
    screenshot_format: str = Field(
        default="png", description="Image format for browser screenshots"
    )
    include_screenshot_in_allure: bool = Field(
        default=True, description="Attach captured artifacts to the test context"
    )
    max_screenshot_size: int = Field(
        default=5 * 1024 * 1024, ge=1, description="Screenshot size warning threshold (bytes)"
    )
    screenshot_retention_days: int = Field(
        default=30, ge=0, description="Age after which old screenshots are removed"
    )

    # Results Configuration
    results_dir_name: str = Field(
        default="allure-results", description="Results directory name under the working dir"
    )
    file_retry_attempts: int = Field(
        default=5, ge=1, description="Attempts per results-directory file operation"
    )
    file_retry_delay_ms: int = Field(
        default=500, ge=0, description="Delay between file operation attempts (ms)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="text",
        description="Log format (json or text)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path"
    )

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @field_validator("screenshot_mode", mode="before")
    @classmethod
    def normalize_screenshot_mode(cls, value: Any) -> Any:
        """Accept ``OnFailureOnly``-style spellings as well as enum values."""
        if isinstance(value, str):
            aliases = {
                "never": ScreenshotMode.NEVER,
                "onfailureonly": ScreenshotMode.ON_FAILURE_ONLY,
                "always": ScreenshotMode.ALWAYS,
            }
            key = value.replace("_", "").replace("-", "").strip().lower()
            if key in aliases:
                return aliases[key]
        return value

    @field_validator("screenshot_format")
    @classmethod
    def normalize_screenshot_format(cls, value: str) -> str:
        value = value.strip().lstrip(".").lower()
        if not value:
            raise ValueError("Screenshot format cannot be empty")
        return value

    @property
    def base_url(self) -> Optional[str]:
        """URL reported as the run's base URL (UI first, then API)."""
        return self.application_url or self.api_url

    def results_directory(self, working_dir: Optional[Path] = None) -> Path:
        """Absolute path of the results directory."""
        return (working_dir or Path.cwd()) / self.results_dir_name

    def screenshot_directory(self, working_dir: Optional[Path] = None) -> Path:
        """Directory captured artifacts are written to."""
        if self.screenshot_dir is None:
            return self.results_directory(working_dir)
        return (working_dir or Path.cwd()) / self.screenshot_dir


class ConfigManager(ConfigProvider):
    """Configuration manager implementation."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize config manager.

        Args:
            settings: Optional settings instance
        """
        self.settings = settings or get_settings()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        value = getattr(self.settings, key, None)
        return default if value is None else value

    def get_required(self, key: str) -> Any:
        """Get required configuration value."""
        value = getattr(self.settings, key, None)
        if value is None:
            raise ConfigurationError(
                f"Required configuration key not found: {key}", key=key
            )
        return value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self.settings.model_dump()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    # Load .env file if it exists
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    return Settings()


def get_config() -> ConfigManager:
    """Get configuration manager instance."""
    return ConfigManager(get_settings())
