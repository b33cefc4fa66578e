"""
Core module exports.
"""

from testscribe.core.interfaces import ConfigProvider, VisualSurface
from testscribe.core.types import (
    Attachment,
    EnvironmentInfo,
    ScreenshotMode,
    SeverityLevel,
    Step,
    StepStatus,
    utc_now,
)

__all__ = [
    # Interfaces
    "ConfigProvider",
    "VisualSurface",
    # Types
    "Attachment",
    "EnvironmentInfo",
    "ScreenshotMode",
    "SeverityLevel",
    "Step",
    "StepStatus",
    "utc_now",
]
