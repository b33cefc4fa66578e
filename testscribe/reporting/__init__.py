"""
Reporting components: execution context, steps, attachments, screenshots
and the per-process lifecycle manager.
"""

from testscribe.reporting.attachments import (
    DEFAULT_MIME_TYPE,
    MIME_TYPES,
    AttachmentHelper,
    get_mime_type,
)
from testscribe.reporting.context import (
    DEFAULT_CATEGORY,
    ContextPropagationStore,
    ExecutionContext,
)
from testscribe.reporting.environment import (
    ENVIRONMENT_FILE_NAME,
    EnvironmentInfoBuilder,
    write_environment_file,
)
from testscribe.reporting.file_store import RetrySafeFileStore
from testscribe.reporting.manager import ReportingManager
from testscribe.reporting.screenshots import ScreenshotPolicyEngine, sanitize_filename
from testscribe.reporting.steps import StepHelper

__all__ = [
    "AttachmentHelper",
    "ContextPropagationStore",
    "DEFAULT_CATEGORY",
    "DEFAULT_MIME_TYPE",
    "ENVIRONMENT_FILE_NAME",
    "EnvironmentInfoBuilder",
    "ExecutionContext",
    "MIME_TYPES",
    "ReportingManager",
    "RetrySafeFileStore",
    "ScreenshotPolicyEngine",
    "StepHelper",
    "get_mime_type",
    "sanitize_filename",
    "write_environment_file",
]
