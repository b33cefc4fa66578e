"""
Error handling and retry mechanisms for TestScribe.

This module provides the exception hierarchy and the bounded retry logic
used for results-directory I/O.
"""

from .exceptions import (
    TestScribeError,
    RetryableError,
    NonRetryableError,
    InitializationError,
    ConfigurationError,
    FileStoreError,
    CaptureError,
)

from .recovery import (
    RetryStrategy,
    FixedDelayStrategy,
    RecoveryManager,
    RecoveryContext,
    is_transient_io_error,
)

__all__ = [
    # Exceptions
    "TestScribeError",
    "RetryableError",
    "NonRetryableError",
    "InitializationError",
    "ConfigurationError",
    "FileStoreError",
    "CaptureError",

    # Recovery
    "RetryStrategy",
    "FixedDelayStrategy",
    "RecoveryManager",
    "RecoveryContext",
    "is_transient_io_error",
]
