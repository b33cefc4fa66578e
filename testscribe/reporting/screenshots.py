"""
Screenshot capture policy for test teardown and on-demand captures.

With a browser attached the engine saves a real screenshot. Without one
(API or headless runs) it writes a JSON snapshot of the process and test
context in its place, so the policy behaves the same either way.
"""

import json
import os
import platform
import re
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

import psutil

from testscribe.config.settings import Settings
from testscribe.core.interfaces import VisualSurface
from testscribe.core.types import ScreenshotMode
from testscribe.error_handling.exceptions import CaptureError
from testscribe.monitoring.logger import get_logger
from testscribe.reporting.attachments import get_mime_type
from testscribe.reporting.context import ContextPropagationStore
from testscribe.reporting.file_store import RetrySafeFileStore

logger = get_logger(__name__)

MAX_FILENAME_LENGTH = 100
CONTEXT_EXTENSION = "json"

# Characters rejected in file names on at least one supported OS
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

Outcome = Union[str, Enum]


def sanitize_filename(name: Optional[str]) -> str:
    """Replace invalid filename characters with ``_`` and cap the length."""
    if not name:
        return "test"
    return _INVALID_FILENAME_CHARS.sub("_", name)[:MAX_FILENAME_LENGTH]


def outcome_label(outcome: Outcome) -> str:
    """String form of a test outcome (enum values are unwrapped)."""
    if isinstance(outcome, Enum):
        return str(outcome.value)
    return str(outcome)


def attachment_mime_type(extension: str) -> str:
    """MIME type for a captured artifact."""
    if extension.lower() == CONTEXT_EXTENSION:
        return "application/json"
    mime_type = get_mime_type(extension)
    if mime_type.startswith("image/"):
        return mime_type
    return "application/octet-stream"


class ScreenshotPolicyEngine:
    """
    Decides whether to capture a diagnostic artifact and produces it.

    Decision table (capture happens when marked):

        mode              failed   other outcome
        NEVER             -        -
        ON_FAILURE_ONLY   yes      -
        ALWAYS            yes      yes

    Capture failures are logged and reported as ``None``; they never
    propagate into the test.

    The browser handle is read from the calling test's execution context,
    so parallel tests each capture their own browser and a test without one
    falls back to the JSON snapshot.
    """

    def __init__(
        self,
        settings: Settings,
        store: ContextPropagationStore,
        file_store: RetrySafeFileStore,
        working_dir: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Screenshot mode, directory, format and size limit
            store: Context store used to register attachments
            file_store: Retry-safe writer for artifact files
            working_dir: Base directory relative screenshot locations resolve against
            clock: Local-time clock used for file name timestamps
        """
        self.settings = settings
        self.store = store
        self.file_store = file_store
        self._working_dir = working_dir
        self._clock = clock

    @property
    def mode(self) -> ScreenshotMode:
        return self.settings.screenshot_mode

    @property
    def screenshot_dir(self) -> Path:
        return Path(self.settings.screenshot_directory(self._working_dir))

    @property
    def surface(self) -> Optional[VisualSurface]:
        """Browser handle bound to the calling test, if any."""
        context = self.store.peek()
        return context.surface if context is not None else None

    def set_visual_surface(self, surface: Optional[VisualSurface]) -> None:
        """Bind a browser handle to the calling test, or detach it with ``None``."""
        self.store.current().surface = surface

    def should_capture(self, outcome: Outcome) -> bool:
        """Apply the decision table to a test outcome."""
        if self.mode == ScreenshotMode.ALWAYS:
            return True
        if self.mode == ScreenshotMode.ON_FAILURE_ONLY:
            return outcome_label(outcome).lower() == "failed"
        return False

    def capture_if_needed(self, test_name: str, outcome: Outcome) -> Optional[Path]:
        """
        Capture an artifact at teardown if the policy asks for one.

        Returns:
            Path of the saved artifact, or None if nothing was produced
        """
        result = outcome_label(outcome)
        try:
            if not self.should_capture(outcome):
                logger.debug(
                    f"Screenshot not needed for test: {test_name}, "
                    f"Result: {result}, Mode: {self.mode.value}",
                    extra={"test_name": test_name},
                )
                return None

            surface = self.surface
            if surface is not None:
                path, content = self._capture_browser(surface, test_name, result)
                attachment_name = f"Screenshot_{result}_{test_name}"
            else:
                path, content = self._capture_context(test_name, result)
                attachment_name = f"Context_{result}_{test_name}"
        except Exception as e:
            logger.warning(
                f"Failed to take screenshot for test: {test_name}: {e}",
                extra={"test_name": test_name},
                exc_info=True,
            )
            return None

        if self.settings.include_screenshot_in_allure:
            self._attach(attachment_name, content, path)

        return path

    def capture_manual(self, name: str, description: Optional[str] = None) -> Optional[Path]:
        """
        Capture an artifact on demand during a test.

        Returns:
            Path of the saved artifact, or None if nothing was produced
        """
        try:
            timestamp = self._timestamp()
            safe_name = sanitize_filename(name)

            surface = self.surface
            if surface is not None:
                content = self._take_screenshot(surface, name)
                path = self.screenshot_dir / (
                    f"{safe_name}_{timestamp}.{self.settings.screenshot_format}"
                )
            else:
                snapshot = self._diagnostic_snapshot()
                snapshot = {
                    "manual_screenshot_name": name,
                    "description": description,
                    **snapshot,
                }
                content = json.dumps(snapshot, indent=2, default=str).encode("utf-8")
                path = self.screenshot_dir / f"{safe_name}_Manual_{timestamp}.{CONTEXT_EXTENSION}"

            self._write(path, content)
            logger.debug(f"Manual screenshot saved: {path}, Name: {name}")
        except Exception as e:
            logger.warning(f"Failed to take manual screenshot {name}: {e}", exc_info=True)
            return None

        if self.settings.include_screenshot_in_allure:
            self._attach(name, content, path)

        return path

    def cleanup_old_screenshots(self, max_age_days: Optional[int] = None) -> int:
        """
        Delete screenshots of the configured format older than the cutoff.

        Returns:
            Number of files deleted
        """
        days = self.settings.screenshot_retention_days if max_age_days is None else max_age_days
        directory = self.screenshot_dir
        deleted = 0

        try:
            if not directory.is_dir():
                return 0

            cutoff = datetime.now(timezone.utc) - timedelta(days=days)
            for path in directory.glob(f"*.{self.settings.screenshot_format}"):
                modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                if modified < cutoff:
                    path.unlink()
                    deleted += 1
        except OSError as e:
            logger.warning(f"Failed to clean up old screenshots in {directory}: {e}")

        if deleted:
            logger.debug(f"Cleaned up {deleted} screenshot(s) older than {days} days")
        return deleted

    def _capture_browser(
        self, surface: VisualSurface, test_name: str, result: str
    ) -> Tuple[Path, bytes]:
        content = self._take_screenshot(surface, test_name)
        self._check_size(content, test_name)

        filename = (
            f"{sanitize_filename(test_name)}_{result}_{self._timestamp()}"
            f".{self.settings.screenshot_format}"
        )
        path = self._write(self.screenshot_dir / filename, content)
        logger.debug(
            f"Browser screenshot saved: {path}, Size: {len(content)} bytes",
            extra={"test_name": test_name},
        )
        return path, content

    def _capture_context(self, test_name: str, result: str) -> Tuple[Path, bytes]:
        snapshot = {
            "test_name": test_name,
            "test_result": result,
            **self._diagnostic_snapshot(),
        }
        content = json.dumps(snapshot, indent=2, default=str).encode("utf-8")
        self._check_size(content, test_name)

        filename = (
            f"{sanitize_filename(test_name)}_{result}_Context_{self._timestamp()}"
            f".{CONTEXT_EXTENSION}"
        )
        path = self._write(self.screenshot_dir / filename, content)
        logger.debug(
            f"Context screenshot saved: {path}, Size: {len(content)} bytes",
            extra={"test_name": test_name},
        )
        return path, content

    def _take_screenshot(self, surface: VisualSurface, label: str) -> bytes:
        try:
            content = surface.screenshot()
        except Exception as e:
            raise CaptureError(
                f"Browser screenshot failed: {e}",
                test_name=label,
                capture_type="browser",
                cause=e,
            ) from e
        if not content:
            raise CaptureError(
                "Browser returned an empty screenshot",
                test_name=label,
                capture_type="browser",
            )
        return bytes(content)

    def _diagnostic_snapshot(self) -> Dict[str, Any]:
        """Process and test metadata written in place of a screenshot."""
        context = self.store.peek()
        test_context: Dict[str, Any] = {}
        if context is not None:
            test_context = {
                "name": context.name,
                "description": context.description,
                "severity": context.severity.value,
                "category": context.category,
                "step_count": len(context.steps),
                "attachment_count": len(context.attachments),
            }

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": platform.node(),
            "process_id": os.getpid(),
            "thread_id": threading.get_ident(),
            "memory_usage": psutil.Process().memory_info().rss,
            "test_context": test_context,
        }

    def _check_size(self, content: bytes, test_name: str) -> None:
        limit = self.settings.max_screenshot_size
        if len(content) > limit:
            logger.warning(
                f"Screenshot size ({len(content)} bytes) exceeds limit "
                f"({limit} bytes) for test: {test_name}",
                extra={"test_name": test_name},
            )

    def _write(self, path: Path, content: bytes) -> Path:
        self.file_store.create_directory(path.parent)
        return self.file_store.write_bytes(path, content)

    def _attach(self, name: str, content: bytes, path: Path) -> None:
        extension = path.suffix.lstrip(".")
        try:
            self.store.current().add_attachment(
                name, content, attachment_mime_type(extension), extension
            )
        except Exception as e:
            logger.warning(f"Failed to attach screenshot {path}: {e}", exc_info=True)

    def _timestamp(self) -> str:
        return self._clock().strftime("%Y%m%d_%H%M%S")
