"""
TestScribe - test execution reporting for pytest suites.
"""

__version__ = "0.1.0"

from testscribe.core.types import ScreenshotMode, SeverityLevel, StepStatus
from testscribe.reporting.manager import ReportingManager

__all__ = [
    "ReportingManager",
    "ScreenshotMode",
    "SeverityLevel",
    "StepStatus",
    "__version__",
]
