"""
Retry strategies and recovery logic for filesystem operations.

The results directory is shared by concurrently running fixtures and by
host processes such as indexers and virus scanners, so single-attempt I/O
fails intermittently. Operations are retried under a bounded strategy and
only for errors classified as transient.
"""

import errno
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .exceptions import NonRetryableError, RetryableError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Windows sharing and lock violations surface as PermissionError
_WINDOWS_SHARING_ERRORS = {32, 33}

_PATH_ERRNOS = {errno.ENAMETOOLONG, errno.EINVAL}


def is_transient_io_error(error: BaseException) -> bool:
    """
    Classify an exception as a transient I/O failure worth retrying.

    Permission and path-validity errors are permanent; any other OSError is
    treated as contention that may clear on its own.
    """
    if isinstance(error, RetryableError):
        return True
    if not isinstance(error, OSError):
        return False
    if isinstance(error, PermissionError):
        return getattr(error, "winerror", None) in _WINDOWS_SHARING_ERRORS
    if isinstance(
        error,
        (FileNotFoundError, NotADirectoryError, IsADirectoryError, FileExistsError),
    ):
        return False
    if error.errno in _PATH_ERRNOS:
        return False
    return True


@dataclass
class RecoveryContext:
    """Context information for retry decisions."""
    error: Optional[BaseException]
    operation_name: str
    attempt_number: int = 1
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    previous_errors: List[BaseException] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed_time(self) -> timedelta:
        """Get elapsed time since operation started."""
        return datetime.now(timezone.utc) - self.start_time

    def add_attempt(self, error: BaseException) -> None:
        """Add a new attempt with its error."""
        self.attempt_number += 1
        self.previous_errors.append(error)
        self.error = error


class RetryStrategy(ABC):
    """Abstract base class for retry strategies."""

    max_attempts: int

    @abstractmethod
    def get_delay_ms(self, attempt: int) -> int:
        """Calculate delay in milliseconds for the given attempt."""
        pass

    @abstractmethod
    def should_retry(self, context: RecoveryContext) -> bool:
        """Determine if operation should be retried."""
        pass


class FixedDelayStrategy(RetryStrategy):
    """Constant delay between a bounded number of attempts."""

    def __init__(
        self,
        max_attempts: int = 5,
        delay_ms: int = 500,
        is_transient: Callable[[BaseException], bool] = is_transient_io_error
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms
        self.is_transient = is_transient

    def get_delay_ms(self, attempt: int) -> int:
        """Delay is the same regardless of attempt number."""
        return self.delay_ms

    def should_retry(self, context: RecoveryContext) -> bool:
        """Retry transient errors until the attempt budget is spent."""
        if context.error is None or isinstance(context.error, NonRetryableError):
            return False
        if not self.is_transient(context.error):
            return False
        return context.attempt_number < self.max_attempts


class RecoveryManager:
    """Runs operations under a retry strategy and keeps per-operation stats."""

    def __init__(
        self,
        default_strategy: Optional[RetryStrategy] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.default_strategy = default_strategy or FixedDelayStrategy()
        self._sleep = sleep
        self._recovery_stats: Dict[str, Dict[str, Any]] = {}
        self._stats_lock = threading.Lock()

    def execute_with_retry(
        self,
        operation: Callable[..., T],
        operation_name: str,
        *args,
        retry_strategy: Optional[RetryStrategy] = None,
        recovery_context: Optional[RecoveryContext] = None,
        **kwargs
    ) -> T:
        """
        Execute an operation, retrying transient failures.

        Args:
            operation: Callable to execute
            operation_name: Name for logging/tracking
            retry_strategy: Custom retry strategy (uses default if None)
            recovery_context: Optional caller-owned context; after the call
                its ``attempt_number`` holds the number of attempts made
            *args, **kwargs: Arguments for the operation

        Returns:
            Result from the first successful attempt

        Raises:
            The last error raised by the operation once the strategy
            declines to retry.
        """
        strategy = retry_strategy or self.default_strategy
        context = recovery_context or RecoveryContext(
            error=None, operation_name=operation_name
        )

        while True:
            try:
                result = operation(*args, **kwargs)
            except Exception as e:
                context.error = e
                if not strategy.should_retry(context):
                    self._record_failure(context)
                    raise

                delay_ms = strategy.get_delay_ms(context.attempt_number)
                logger.debug(
                    f"Retrying {operation_name} after {delay_ms}ms "
                    f"(attempt {context.attempt_number + 1}/{strategy.max_attempts}): {e}"
                )
                self._sleep(delay_ms / 1000)
                context.add_attempt(e)
                continue

            self._record_success(context)
            return result

    def _record_success(self, context: RecoveryContext) -> None:
        """Record successful operation statistics."""
        with self._stats_lock:
            stats = self._recovery_stats.setdefault(
                context.operation_name,
                {"successes": 0, "failures": 0, "retries": 0}
            )
            stats["successes"] += 1
            if context.attempt_number > 1:
                stats["retries"] += context.attempt_number - 1

    def _record_failure(self, context: RecoveryContext) -> None:
        """Record failed operation statistics."""
        with self._stats_lock:
            stats = self._recovery_stats.setdefault(
                context.operation_name,
                {"successes": 0, "failures": 0, "retries": 0}
            )
            stats["failures"] += 1
            stats["retries"] += context.attempt_number - 1

    def get_statistics(self) -> Dict[str, Dict[str, Any]]:
        """Get recovery statistics for all operations."""
        with self._stats_lock:
            return {name: dict(stats) for name, stats in self._recovery_stats.items()}

    def reset_statistics(self) -> None:
        """Reset all recovery statistics."""
        with self._stats_lock:
            self._recovery_stats.clear()
