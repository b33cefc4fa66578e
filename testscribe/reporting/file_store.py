"""
Retry-tolerant filesystem operations for the results directory.
"""

import os
import stat
import time
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from testscribe.error_handling.exceptions import FileStoreError
from testscribe.error_handling.recovery import (
    FixedDelayStrategy,
    RecoveryContext,
    RecoveryManager,
)
from testscribe.monitoring.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


class RetrySafeFileStore:
    """
    Directory and file operations that survive transient sharing violations.

    Every operation runs under a fixed retry policy (5 attempts, 500ms apart
    by default). Only transient I/O errors are retried; permission and path
    errors fail on the first attempt.

    Deletes are best-effort and never raise. Directory creation and file
    writes raise ``FileStoreError`` once the policy gives up, and the caller
    decides whether the path is critical.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        delay_ms: int = 500,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the file store.

        Args:
            max_attempts: Attempts per operation, including the first
            delay_ms: Fixed delay between attempts in milliseconds
            sleep: Sleep function, replaceable in tests
        """
        self.strategy = FixedDelayStrategy(max_attempts=max_attempts, delay_ms=delay_ms)
        self.recovery = RecoveryManager(default_strategy=self.strategy, sleep=sleep)

    @property
    def max_attempts(self) -> int:
        return self.strategy.max_attempts

    def _attempt(
        self,
        operation: Callable[..., object],
        operation_name: str,
        path: Path,
        *args,
    ) -> Tuple[RecoveryContext, Optional[OSError]]:
        """Run ``operation(path, *args)`` under the retry policy."""
        context = RecoveryContext(error=None, operation_name=operation_name)
        try:
            self.recovery.execute_with_retry(
                operation,
                operation_name,
                path,
                *args,
                recovery_context=context,
            )
        except OSError as e:
            return context, e
        return context, None

    def delete_directory(self, path: PathLike) -> bool:
        """
        Recursively delete a directory, best effort.

        Files are removed first (clearing the read-only bit), then
        subdirectories, then the directory itself. Failures are logged and
        skipped. If any entry could not be removed the directory is left in
        place without attempting to remove it.

        Returns:
            True if the directory no longer exists afterwards
        """
        directory = Path(path)
        if not directory.exists():
            return True

        try:
            entries = list(directory.iterdir())
        except OSError as e:
            logger.warning(f"Cannot list directory {directory}: {e}")
            entries = []

        subdirectories = []
        emptied = True
        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                subdirectories.append(entry)
            elif not self._delete_file(entry):
                emptied = False

        for subdirectory in subdirectories:
            if not self.delete_directory(subdirectory):
                emptied = False

        if not emptied:
            logger.warning(
                f"Leaving directory {directory} in place: some entries could not be deleted",
                extra={"path": str(directory)},
            )
            return False

        context, error = self._attempt(_remove_directory, "delete_directory", directory)
        if error is not None:
            logger.warning(
                f"Giving up deleting directory {directory} after "
                f"{context.attempt_number} attempt(s): {error}",
                extra={"path": str(directory), "attempts": context.attempt_number},
            )
            return False

        if context.attempt_number > 1:
            logger.debug(
                f"Deleted directory {directory} after {context.attempt_number} attempts"
            )
        return True

    def _delete_file(self, path: Path) -> bool:
        """Delete one file, clearing the read-only attribute first."""
        context, error = self._attempt(_remove_file, "delete_file", path)
        if error is not None:
            logger.warning(
                f"Giving up deleting file {path} after "
                f"{context.attempt_number} attempt(s): {error}",
                extra={"path": str(path), "attempts": context.attempt_number},
            )
            return False
        return True

    def create_directory(self, path: PathLike) -> Path:
        """
        Create a directory (and parents) if missing.

        Raises:
            FileStoreError: If the directory cannot be created
        """
        directory = Path(path)
        context, error = self._attempt(_make_directory, "create_directory", directory)
        if error is not None:
            raise FileStoreError(
                f"Could not create directory {directory}: {error}",
                path=directory,
                operation="create_directory",
                attempts=context.attempt_number,
                cause=error,
            ) from error

        return directory

    def recreate_directory(self, path: PathLike) -> Path:
        """Delete a directory if present and create it empty."""
        self.delete_directory(path)
        return self.create_directory(path)

    def write_bytes(self, path: PathLike, data: bytes) -> Path:
        """
        Write bytes to a file, replacing existing content.

        Raises:
            FileStoreError: If the file cannot be written
        """
        target = Path(path)
        context, error = self._attempt(_write_bytes, "write_file", target, data)
        if error is not None:
            raise FileStoreError(
                f"Could not write file {target}: {error}",
                path=target,
                operation="write_file",
                attempts=context.attempt_number,
                cause=error,
            ) from error

        logger.debug(f"Wrote {len(data)} bytes to {target}")
        return target

    def write_text(self, path: PathLike, text: str, encoding: str = "utf-8") -> Path:
        """Write text to a file, replacing existing content."""
        return self.write_bytes(path, text.encode(encoding))


def _remove_file(path: Path) -> None:
    if not path.is_symlink():
        try:
            os.chmod(path, stat.S_IWRITE | stat.S_IREAD)
        except FileNotFoundError:
            return
        except OSError:
            # os.remove reports the real error
            pass
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def _remove_directory(path: Path) -> None:
    try:
        os.rmdir(path)
    except FileNotFoundError:
        pass


def _make_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _write_bytes(path: Path, data: bytes) -> None:
    with open(path, "wb") as handle:
        handle.write(data)
