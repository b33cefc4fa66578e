"""
Tests for core data types.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from testscribe.core.types import (
    Attachment,
    ScreenshotMode,
    SeverityLevel,
    Step,
    StepStatus,
    utc_now,
)


class TestEnums:
    """Tests for enum values."""

    def test_severity_values(self):
        assert [level.value for level in SeverityLevel] == [
            "blocker", "critical", "high", "normal", "medium", "minor", "trivial",
        ]

    def test_screenshot_mode_values(self):
        assert ScreenshotMode("on_failure_only") is ScreenshotMode.ON_FAILURE_ONLY

    def test_status_is_str(self):
        assert StepStatus.FAILED == "failed"


class TestStep:
    """Tests for Step."""

    def test_running_step(self):
        step = Step(name="Open cart")

        assert step.status == StepStatus.PASSED
        assert step.end_time is None
        assert step.duration is None
        assert not step.is_complete

    def test_duration(self):
        start = utc_now()
        step = Step(name="Pay", start_time=start, end_time=start + timedelta(seconds=2))

        assert step.duration == timedelta(seconds=2)
        assert step.is_complete


class TestAttachment:
    """Tests for Attachment."""

    def test_size(self):
        assert Attachment(name="Log", content=b"12345").size == 5

    def test_is_immutable(self):
        attachment = Attachment(name="Log", content=b"x", mime_type="text/plain", extension="txt")

        with pytest.raises(ValidationError):
            attachment.name = "Other"
