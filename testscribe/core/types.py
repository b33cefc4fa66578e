"""
Core data models and types for the TestScribe reporting engine.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SeverityLevel(str, Enum):
    """Severity of a test as shown in the report."""

    BLOCKER = "blocker"
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    MEDIUM = "medium"
    MINOR = "minor"
    TRIVIAL = "trivial"


class StepStatus(str, Enum):
    """Terminal status of a recorded step."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    BROKEN = "broken"


class ScreenshotMode(str, Enum):
    """When the screenshot policy captures a diagnostic artifact."""

    NEVER = "never"
    ON_FAILURE_ONLY = "on_failure_only"
    ALWAYS = "always"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Step(BaseModel):
    """A named sub-operation recorded within a test execution."""

    name: str
    description: Optional[str] = None
    start_time: datetime = Field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    status: StepStatus = StepStatus.PASSED
    error_message: Optional[str] = None

    @property
    def duration(self) -> Optional[timedelta]:
        """Elapsed time of the step, or None while it is still running."""
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None


class Attachment(BaseModel):
    """A named artifact attached to a test execution."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes = b""
    mime_type: str = "application/octet-stream"
    extension: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


class EnvironmentInfo(BaseModel):
    """Flat description of the environment a test run executes in."""

    operating_system: str
    base_url: Optional[str] = None
    framework: str = "pytest"
    language: str = "Python"
    browser: Optional[str] = None
    browser_version: Optional[str] = None

    # Supplementary keys written after the standard ones
    os_version: Optional[str] = None
    framework_version: Optional[str] = None
    test_environment: Optional[str] = None

    def to_properties(self) -> List[str]:
        """
        Render the environment as ``key=value`` lines.

        The six standard keys are always emitted, in a fixed order, with an
        empty value when unknown. Supplementary keys only appear when set.
        """
        lines = [
            f"Operating.System={self.operating_system}",
            f"Browser={self.browser or ''}",
            f"Browser.Version={self.browser_version or ''}",
            f"Base.URL={self.base_url or ''}",
            f"Framework={self.framework}",
            f"Language={self.language}",
        ]

        extras = [
            ("OS.Version", self.os_version),
            ("Framework.Version", self.framework_version),
            ("Test.Environment", self.test_environment),
        ]
        for key, value in extras:
            if value:
                lines.append(f"{key}={value}")

        return lines
