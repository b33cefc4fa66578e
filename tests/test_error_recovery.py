"""
Unit tests for error recovery and retry logic.
"""

import errno
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from testscribe.error_handling.exceptions import (
    ConfigurationError,
    FileStoreError,
)
from testscribe.error_handling.recovery import (
    FixedDelayStrategy,
    RecoveryContext,
    RecoveryManager,
    is_transient_io_error,
)


def busy_error() -> OSError:
    return OSError(errno.EBUSY, "Device or resource busy")


class TestRecoveryContext:
    """Test recovery context."""

    def test_context_creation(self):
        error = ValueError("Test error")
        context = RecoveryContext(error=error, operation_name="test_op")

        assert context.error is error
        assert context.attempt_number == 1
        assert context.previous_errors == []
        assert isinstance(context.start_time, datetime)

    def test_elapsed_time(self):
        context = RecoveryContext(error=None, operation_name="test_op")
        context.start_time = datetime.now(timezone.utc) - timedelta(seconds=1)

        assert context.elapsed_time.total_seconds() >= 1.0

    def test_add_attempt(self):
        context = RecoveryContext(error=None, operation_name="test_op")
        first = busy_error()
        context.add_attempt(first)

        assert context.attempt_number == 2
        assert context.previous_errors == [first]
        assert context.error is first


class TestTransientClassification:
    """Test which I/O errors are retried."""

    @pytest.mark.parametrize("error", [
        OSError(errno.EBUSY, "busy"),
        OSError(errno.ENOTEMPTY, "not empty"),
        OSError(errno.EAGAIN, "try again"),
        FileStoreError("retry me"),
    ])
    def test_transient(self, error):
        assert is_transient_io_error(error) is True

    @pytest.mark.parametrize("error", [
        PermissionError(errno.EACCES, "denied"),
        FileNotFoundError(errno.ENOENT, "missing"),
        NotADirectoryError(errno.ENOTDIR, "not a dir"),
        OSError(errno.ENAMETOOLONG, "name too long"),
        OSError(errno.EINVAL, "invalid"),
        ValueError("not io"),
    ])
    def test_permanent(self, error):
        assert is_transient_io_error(error) is False

    def test_windows_sharing_violation_is_transient(self):
        error = PermissionError(errno.EACCES, "in use")
        error.winerror = 32

        assert is_transient_io_error(error) is True


class TestFixedDelayStrategy:
    """Test fixed delay strategy."""

    def test_constant_delay(self):
        strategy = FixedDelayStrategy(max_attempts=5, delay_ms=500)

        assert [strategy.get_delay_ms(n) for n in range(1, 5)] == [500] * 4

    def test_retry_budget(self):
        strategy = FixedDelayStrategy(max_attempts=3)
        context = RecoveryContext(error=busy_error(), operation_name="op")

        assert strategy.should_retry(context)
        context.attempt_number = 3
        assert not strategy.should_retry(context)

    def test_non_retryable_error(self):
        strategy = FixedDelayStrategy()
        context = RecoveryContext(error=ConfigurationError("bad"), operation_name="op")

        assert not strategy.should_retry(context)

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            FixedDelayStrategy(max_attempts=0)


class TestRecoveryManager:
    """Test recovery manager."""

    @pytest.fixture
    def sleep(self):
        return Mock()

    @pytest.fixture
    def manager(self, sleep):
        return RecoveryManager(FixedDelayStrategy(max_attempts=5, delay_ms=500), sleep=sleep)

    def test_success_first_attempt(self, manager, sleep):
        operation = Mock(return_value="ok")

        assert manager.execute_with_retry(operation, "op", 1, key="v") == "ok"
        operation.assert_called_once_with(1, key="v")
        sleep.assert_not_called()

    def test_success_after_transient_failures(self, manager, sleep):
        operation = Mock(side_effect=[busy_error(), busy_error(), "done"])
        context = RecoveryContext(error=None, operation_name="op")

        result = manager.execute_with_retry(operation, "op", recovery_context=context)

        assert result == "done"
        assert operation.call_count == 3
        assert context.attempt_number == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)

    def test_gives_up_after_max_attempts(self, manager, sleep):
        operation = Mock(side_effect=busy_error())

        with pytest.raises(OSError):
            manager.execute_with_retry(operation, "op")

        assert operation.call_count == 5
        assert sleep.call_count == 4

    def test_permanent_error_not_retried(self, manager, sleep):
        operation = Mock(side_effect=PermissionError(errno.EACCES, "denied"))

        with pytest.raises(PermissionError):
            manager.execute_with_retry(operation, "op")

        operation.assert_called_once()
        sleep.assert_not_called()

    def test_statistics(self, manager):
        manager.execute_with_retry(Mock(side_effect=[busy_error(), "ok"]), "write")
        with pytest.raises(OSError):
            manager.execute_with_retry(Mock(side_effect=busy_error()), "delete")

        stats = manager.get_statistics()
        assert stats["write"] == {"successes": 1, "failures": 0, "retries": 1}
        assert stats["delete"] == {"successes": 0, "failures": 1, "retries": 4}

        manager.reset_statistics()
        assert manager.get_statistics() == {}
