"""
Unit tests for configuration management.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from testscribe.config.settings import ConfigManager, Settings, get_settings
from testscribe.core.types import ScreenshotMode
from testscribe.error_handling.exceptions import ConfigurationError


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings(self):
        """Test default settings values."""
        settings = Settings()

        assert settings.screenshot_mode == ScreenshotMode.ON_FAILURE_ONLY
        assert settings.screenshot_dir is None
        assert settings.screenshot_format == "png"
        assert settings.include_screenshot_in_allure is True
        assert settings.max_screenshot_size == 5 * 1024 * 1024
        assert settings.screenshot_retention_days == 30
        assert settings.results_dir_name == "allure-results"
        assert settings.file_retry_attempts == 5
        assert settings.file_retry_delay_ms == 500
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"

    def test_settings_from_env(self):
        """Test loading settings from environment variables."""
        with patch.dict(os.environ, {
            "TESTSCRIBE_SCREENSHOT_MODE": "always",
            "TESTSCRIBE_SCREENSHOT_FORMAT": "JPEG",
            "TESTSCRIBE_APPLICATION_URL": "https://app.example.com",
            "TESTSCRIBE_LOG_LEVEL": "debug",
        }):
            settings = Settings()

            assert settings.screenshot_mode == ScreenshotMode.ALWAYS
            assert settings.screenshot_format == "jpeg"
            assert settings.application_url == "https://app.example.com"
            assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("value, expected", [
        ("OnFailureOnly", ScreenshotMode.ON_FAILURE_ONLY),
        ("on_failure_only", ScreenshotMode.ON_FAILURE_ONLY),
        ("on-failure-only", ScreenshotMode.ON_FAILURE_ONLY),
        ("Never", ScreenshotMode.NEVER),
        ("ALWAYS", ScreenshotMode.ALWAYS),
        (ScreenshotMode.NEVER, ScreenshotMode.NEVER),
    ])
    def test_screenshot_mode_aliases(self, value, expected):
        """Test screenshot mode accepts several spellings."""
        assert Settings(screenshot_mode=value).screenshot_mode == expected

    def test_invalid_screenshot_mode(self):
        with pytest.raises(ValueError):
            Settings(screenshot_mode="sometimes")

    def test_screenshot_format_normalized(self):
        assert Settings(screenshot_format=".PNG").screenshot_format == "png"

        with pytest.raises(ValueError, match="cannot be empty"):
            Settings(screenshot_format=" . ")

    def test_log_level_validation(self):
        """Test log level validation."""
        settings = Settings(log_level="warning")
        assert settings.log_level == "WARNING"

        with pytest.raises(ValueError, match="Invalid log level"):
            Settings(log_level="INVALID")

    def test_log_format_validation(self):
        """Test log format validation."""
        assert Settings(log_format="json").log_format == "json"

        with pytest.raises(ValueError, match="Invalid log format"):
            Settings(log_format="xml")

    def test_numeric_validation(self):
        """Test numeric field validation."""
        with pytest.raises(ValueError):
            Settings(file_retry_attempts=0)

        with pytest.raises(ValueError):
            Settings(max_screenshot_size=0)

    def test_base_url_prefers_application_url(self):
        settings = Settings(application_url="https://ui", api_url="https://api")
        assert settings.base_url == "https://ui"

        settings = Settings(api_url="https://api")
        assert settings.base_url == "https://api"

        assert Settings().base_url is None

    def test_results_and_screenshot_directories(self, tmp_path):
        settings = Settings()
        assert settings.results_directory(tmp_path) == tmp_path / "allure-results"
        assert settings.screenshot_directory(tmp_path) == tmp_path / "allure-results"

        settings = Settings(screenshot_dir=tmp_path / "shots")
        assert settings.screenshot_directory(tmp_path) == tmp_path / "shots"

    def test_relative_screenshot_dir_uses_working_dir(self, tmp_path):
        settings = Settings(screenshot_dir="screenshots")

        assert settings.screenshot_directory(tmp_path) == tmp_path / "screenshots"
        assert settings.screenshot_directory() == Path.cwd() / "screenshots"


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_get_with_default(self):
        manager = ConfigManager(Settings())

        assert manager.get("results_dir_name") == "allure-results"
        assert manager.get("application_url", "fallback") == "fallback"
        assert manager.get("no_such_key", 42) == 42

    def test_get_required(self):
        manager = ConfigManager(Settings(api_url="https://api.example.com"))

        assert manager.get_required("api_url") == "https://api.example.com"

        with pytest.raises(ConfigurationError) as exc_info:
            manager.get_required("application_url")

        assert exc_info.value.key == "application_url"
        assert "application_url" in str(exc_info.value)

    def test_get_all(self):
        values = ConfigManager(Settings()).get_all()

        assert values["screenshot_format"] == "png"
        assert values["file_retry_attempts"] == 5
        assert "parallel_workers" not in values


class TestGetSettings:
    """Tests for cached settings."""

    def test_settings_are_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()

    def test_loads_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("TESTSCRIBE_ENVIRONMENT_NAME", raising=False)
        Path(".env").write_text("TESTSCRIBE_ENVIRONMENT_NAME=Staging\n")

        get_settings.cache_clear()
        try:
            assert get_settings().environment_name == "Staging"
        finally:
            get_settings.cache_clear()
            os.environ.pop("TESTSCRIBE_ENVIRONMENT_NAME", None)
