"""
Shared fixtures for TestScribe tests.
"""

from datetime import datetime
from typing import Any, Dict, Optional

import pytest

from testscribe.config.settings import Settings
from testscribe.core.interfaces import VisualSurface
from testscribe.reporting.context import ContextPropagationStore
from testscribe.reporting.file_store import RetrySafeFileStore

pytest_plugins = ["pytester"]

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeSurface(VisualSurface):
    """Visual surface returning canned screenshot bytes and capabilities."""

    def __init__(
        self,
        content: bytes = PNG_BYTES,
        capabilities: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.content = content
        self.capabilities = capabilities or {}
        self.error = error
        self.calls = 0

    def screenshot(self) -> bytes:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.content

    def get_capability(self, name: str) -> Optional[Any]:
        return self.capabilities.get(name)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing screenshots at a temporary directory."""
    return Settings(
        screenshot_dir=tmp_path / "screenshots",
        file_retry_delay_ms=0,
        environment_name="QA",
        application_url="https://shop.example.com",
    )


@pytest.fixture
def store() -> ContextPropagationStore:
    return ContextPropagationStore()


@pytest.fixture
def file_store() -> RetrySafeFileStore:
    """File store that never actually sleeps."""
    return RetrySafeFileStore(sleep=lambda seconds: None)


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 3, 15, 14, 30, 5)


@pytest.fixture
def make_surface():
    """Factory for fake visual surfaces."""
    return FakeSurface
