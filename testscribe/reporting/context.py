"""
Per-test execution context and its propagation across threads and tasks.
"""

import itertools
from contextvars import ContextVar
from typing import List, Optional, Tuple

from testscribe.core.interfaces import VisualSurface
from testscribe.core.types import (
    Attachment,
    SeverityLevel,
    Step,
    StepStatus,
    utc_now,
)
from testscribe.monitoring.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CATEGORY = "General"


class ExecutionContext:
    """
    Identity, steps and attachments of one running test.

    Steps and attachments are append-only while the test runs and keep
    insertion order, which is also report order. ``clear()`` is the only way
    to empty them and resets the identity fields as well.
    """

    def __init__(self) -> None:
        self.name: Optional[str] = None
        self.description: Optional[str] = None
        self.severity: SeverityLevel = SeverityLevel.NORMAL
        self.category: str = DEFAULT_CATEGORY
        self._steps: List[Step] = []
        self._attachments: List[Attachment] = []
        # Browser handle of this test only; None for headless and API tests
        self.surface: Optional[VisualSurface] = None

    @property
    def steps(self) -> Tuple[Step, ...]:
        """Recorded steps in insertion order."""
        return tuple(self._steps)

    @property
    def attachments(self) -> Tuple[Attachment, ...]:
        """Recorded attachments in insertion order."""
        return tuple(self._attachments)

    def set_test_info(
        self,
        name: str,
        description: Optional[str] = None,
        severity: SeverityLevel = SeverityLevel.NORMAL,
        category: str = DEFAULT_CATEGORY,
    ) -> None:
        """Replace the identity metadata. Steps and attachments are kept."""
        self.name = name
        self.description = description
        self.severity = SeverityLevel(severity)
        self.category = category

        logger.debug(
            f"Test context set: {name}, Category: {category}, Severity: {self.severity.value}",
            extra={"test_name": name},
        )

    def add_step(self, name: str, description: Optional[str] = None) -> Step:
        """Append a running step and return it for later completion."""
        step = Step(name=name, description=description, start_time=utc_now())
        self._steps.append(step)

        logger.debug(
            f"Step added: {name}",
            extra={"test_name": self.name, "step_name": name},
        )
        return step

    def complete_step(
        self,
        step: Optional[Step],
        status: StepStatus = StepStatus.PASSED,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Stamp the end time and status on a step.

        Completing ``None`` does nothing. Completing the same step twice
        overwrites the previous end time and status.
        """
        if step is None:
            return

        step.end_time = utc_now()
        step.status = StepStatus(status)
        step.error_message = error_message

        duration_ms = step.duration.total_seconds() * 1000
        logger.debug(
            f"Step completed: {step.name}, Status: {step.status.value}, "
            f"Duration: {duration_ms:.1f}ms",
            extra={"test_name": self.name, "step_name": step.name},
        )

    def add_attachment(
        self,
        name: str,
        content: bytes,
        mime_type: str,
        extension: str,
    ) -> Attachment:
        """Append an immutable attachment."""
        attachment = Attachment(
            name=name,
            content=bytes(content or b""),
            mime_type=mime_type,
            extension=extension,
        )
        self._attachments.append(attachment)

        logger.debug(
            f"Attachment added: {name}, Type: {mime_type}, Size: {attachment.size} bytes",
            extra={"test_name": self.name, "attachment_name": name},
        )
        return attachment

    def add_text_attachment(
        self,
        name: str,
        text: str,
        extension: str = "txt",
    ) -> Attachment:
        """Append a UTF-8 encoded text attachment."""
        return self.add_attachment(name, text.encode("utf-8"), "text/plain", extension)

    def clear(self) -> None:
        """Reset identity to defaults, detach the surface and drop steps and attachments."""
        self.name = None
        self.description = None
        self.severity = SeverityLevel.NORMAL
        self.category = DEFAULT_CATEGORY
        self._steps.clear()
        self._attachments.clear()
        self.surface = None

        logger.debug("Test context cleared")

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(name={self.name!r}, steps={len(self._steps)}, "
            f"attachments={len(self._attachments)})"
        )


class ContextPropagationStore:
    """
    Maps the calling logical execution to its ``ExecutionContext``.

    The binding lives in a ``ContextVar``: it follows ``await`` continuations
    and tasks forked after the context was created, while new threads and
    sibling tasks forked before creation start unbound and get their own.
    """

    _ids = itertools.count(1)

    def __init__(self, name: str = "testscribe_execution_context") -> None:
        self._var: ContextVar[Optional[ExecutionContext]] = ContextVar(
            f"{name}_{next(self._ids)}", default=None
        )

    def current(self) -> ExecutionContext:
        """Return the context for the caller, creating it on first access."""
        context = self._var.get()
        if context is None:
            context = ExecutionContext()
            self._var.set(context)
        return context

    def peek(self) -> Optional[ExecutionContext]:
        """Return the bound context without creating one."""
        return self._var.get()

    def reset(self) -> None:
        """Drop the binding for the calling execution."""
        self._var.set(None)
