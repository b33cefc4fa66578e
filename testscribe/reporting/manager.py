"""
Per-process reporting object exposing the test lifecycle hooks.
"""

import threading
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from testscribe.config.settings import Settings, get_settings
from testscribe.core.interfaces import VisualSurface
from testscribe.core.types import EnvironmentInfo, SeverityLevel
from testscribe.error_handling.exceptions import FileStoreError, InitializationError
from testscribe.monitoring.logger import get_logger, log_test_event, setup_logging
from testscribe.reporting.attachments import AttachmentHelper
from testscribe.reporting.context import (
    DEFAULT_CATEGORY,
    ContextPropagationStore,
    ExecutionContext,
)
from testscribe.reporting.environment import EnvironmentInfoBuilder, write_environment_file
from testscribe.reporting.file_store import RetrySafeFileStore
from testscribe.reporting.screenshots import ScreenshotPolicyEngine, outcome_label
from testscribe.reporting.steps import StepHelper

logger = get_logger(__name__)


class ReportingManager:
    """
    Owns the reporting components for one test run.

    Construct one per process, call ``initialize()`` once, then drive it
    through the suite and test hooks. Apart from ``initialize()`` and the
    results directory recreation in ``on_suite_start()``, hooks log their
    failures and return normally so reporting never changes a test outcome.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        working_dir: Optional[Path] = None,
        sleep: Callable[[float], None] = time.sleep,
        configure_logging: bool = True,
    ) -> None:
        """
        Initialize the manager.

        Args:
            settings: Settings instance (cached settings if None)
            working_dir: Directory the results directory is created under
            sleep: Sleep function used between file retries
            configure_logging: Apply the logging settings on ``initialize()``
        """
        self.settings = settings or get_settings()
        self.working_dir = Path(working_dir) if working_dir is not None else Path.cwd()
        self._sleep = sleep
        self._configure_logging = configure_logging
        self._lock = threading.Lock()
        self._initialized = False

        self.file_store: Optional[RetrySafeFileStore] = None
        self.store: Optional[ContextPropagationStore] = None
        self.engine: Optional[ScreenshotPolicyEngine] = None
        self._steps: Optional[StepHelper] = None
        self._attachments: Optional[AttachmentHelper] = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def results_dir(self) -> Path:
        return self.settings.results_directory(self.working_dir)

    @property
    def steps(self) -> StepHelper:
        self._ensure_initialized()
        return self._steps

    @property
    def attachments(self) -> AttachmentHelper:
        self._ensure_initialized()
        return self._attachments

    def initialize(self) -> None:
        """
        Configure logging and build the reporting components.

        Raises:
            InitializationError: If the manager is already initialized
        """
        with self._lock:
            if self._initialized:
                raise InitializationError("Reporting manager is already initialized")

            if self._configure_logging:
                setup_logging(settings=self.settings)

            self.file_store = RetrySafeFileStore(
                max_attempts=self.settings.file_retry_attempts,
                delay_ms=self.settings.file_retry_delay_ms,
                sleep=self._sleep,
            )
            self.store = ContextPropagationStore()
            self.engine = ScreenshotPolicyEngine(
                self.settings,
                self.store,
                self.file_store,
                working_dir=self.working_dir,
            )
            self._steps = StepHelper(self.store)
            self._attachments = AttachmentHelper(self.store)
            self._initialized = True

        logger.info(
            "Reporting manager initialized",
            extra={
                "results_dir": str(self.results_dir),
                "screenshot_mode": self.settings.screenshot_mode.value,
            },
        )

    def current_context(self) -> ExecutionContext:
        """Execution context of the calling test, created on first access."""
        self._ensure_initialized()
        return self.store.current()

    def on_suite_start(self, surface: Optional[VisualSurface] = None) -> None:
        """
        Recreate the results directory and record the run environment.

        ``surface`` only supplies browser details for ``environment.properties``;
        tests bind their own browser in ``on_test_start``.

        Raises:
            InitializationError: If the manager is not initialized
            FileStoreError: If the results directory cannot be created
        """
        self._ensure_initialized()
        log_test_event("suite_start", None, {"results_dir": str(self.results_dir)})

        self.file_store.recreate_directory(self.results_dir)
        logger.info(f"Results directory ready: {self.results_dir}")

        try:
            info = EnvironmentInfoBuilder(self.settings).build(surface)
            self.add_environment_info(info)
        except Exception as e:
            logger.warning(f"Failed to record environment information: {e}", exc_info=True)

    def add_environment_info(self, info: EnvironmentInfo) -> Optional[Path]:
        """Write ``environment.properties``; failures are logged, not raised."""
        self._ensure_initialized()
        try:
            return write_environment_file(self.results_dir, info, self.file_store)
        except FileStoreError as e:
            logger.warning(f"Failed to write environment information: {e}")
            return None

    def on_test_start(
        self,
        test_name: str,
        description: Optional[str] = None,
        severity: SeverityLevel = SeverityLevel.NORMAL,
        category: str = DEFAULT_CATEGORY,
        surface: Optional[VisualSurface] = None,
    ) -> ExecutionContext:
        """Bind a fresh execution context to the calling test."""
        self._ensure_initialized()

        # Pooled threads may still carry the previous test's binding
        self.store.reset()
        context = self.store.current()
        context.set_test_info(test_name, description, severity, category)
        context.surface = surface

        log_test_event(
            "test_start",
            test_name,
            {"severity": severity.value, "category": category},
        )
        return context

    def set_visual_surface(self, surface: Optional[VisualSurface]) -> None:
        """Bind a browser handle to the calling test, or detach it with ``None``."""
        self._ensure_initialized()
        self.engine.set_visual_surface(surface)

    def on_test_end(self, test_name: str, outcome: Union[str, Enum]) -> Optional[Path]:
        """
        Evaluate screenshot capture for the finished test, then clear its context.

        Returns:
            Path of the captured artifact, or None
        """
        self._ensure_initialized()
        result = outcome_label(outcome)
        path = None

        try:
            path = self.engine.capture_if_needed(test_name, outcome)
        except Exception as e:
            logger.warning(f"Screenshot evaluation failed for {test_name}: {e}", exc_info=True)

        context = self.store.peek()
        log_test_event(
            "test_end",
            test_name,
            {
                "outcome": result,
                "step_count": len(context.steps) if context else 0,
                "attachment_count": len(context.attachments) if context else 0,
            },
        )

        if context is not None:
            context.clear()
        return path

    def on_suite_end(self) -> None:
        """Clean up old screenshots, request report generation and dispose."""
        self._ensure_initialized()
        try:
            self.engine.cleanup_old_screenshots()
        except Exception as e:
            logger.warning(f"Screenshot cleanup failed: {e}", exc_info=True)

        self.generate_report()
        log_test_event("suite_end", None)
        self.dispose()

    def generate_report(self) -> None:
        """Log the report generation request; rendering is left to external tooling."""
        logger.info(
            f"Report generation requested for results in {self.results_dir}",
            extra={"results_dir": str(self.results_dir)},
        )

    def dispose(self) -> None:
        """Release the components; the manager can be initialized again afterwards."""
        with self._lock:
            if not self._initialized:
                return
            if self.store is not None:
                self.store.reset()
            self.engine = None
            self.store = None
            self.file_store = None
            self._steps = None
            self._attachments = None
            self._initialized = False

        logger.debug("Reporting manager disposed")

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise InitializationError("Reporting manager is not initialized")
