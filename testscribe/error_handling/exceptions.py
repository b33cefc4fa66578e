"""
Custom exception hierarchy for TestScribe error handling.

Separates fatal lifecycle and configuration errors from transient I/O
failures so callers can decide whether to abort the run, retry, or log and
carry on without the artifact.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union


class TestScribeError(Exception):
    """Base exception for all TestScribe errors."""

    __test__ = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class RetryableError(TestScribeError):
    """Base class for errors that can be retried."""

    def __init__(
        self,
        message: str,
        max_retries: int = 5,
        retry_delay_ms: int = 500,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self.retry_count = 0

    def increment_retry(self) -> None:
        """Increment retry counter."""
        self.retry_count += 1

    def can_retry(self) -> bool:
        """Check if error can be retried."""
        return self.retry_count < self.max_retries


class NonRetryableError(TestScribeError):
    """Base class for errors that should not be retried."""
    pass


class InitializationError(NonRetryableError):
    """Raised when the reporting lifecycle is used out of order."""

    def __init__(self, message: str, component: str = "ReportingManager", **kwargs):
        super().__init__(message, **kwargs)
        self.component = component
        self.details.update({"component": component})


class ConfigurationError(NonRetryableError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.key = key
        self.details.update({"key": key})


class FileStoreError(RetryableError):
    """Raised when a results-directory operation cannot be completed."""

    def __init__(
        self,
        message: str,
        path: Union[str, Path, None] = None,
        operation: Optional[str] = None,
        attempts: int = 0,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.path = str(path) if path is not None else None
        self.operation = operation
        self.attempts = attempts
        self.details.update({
            "path": self.path,
            "operation": operation,
            "attempts": attempts
        })


class CaptureError(TestScribeError):
    """Raised when a diagnostic artifact cannot be produced."""

    def __init__(
        self,
        message: str,
        test_name: Optional[str] = None,
        capture_type: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.test_name = test_name
        self.capture_type = capture_type
        self.details.update({
            "test_name": test_name,
            "capture_type": capture_type
        })
