"""
Helpers that wrap callables in recorded steps.
"""

import time
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Optional, TypeVar

import pytest

from testscribe.core.types import Step, StepStatus
from testscribe.monitoring.logger import get_logger, log_performance_metric
from testscribe.reporting.context import ContextPropagationStore

logger = get_logger(__name__)

T = TypeVar("T")


class StepHelper:
    """
    Records steps against the caller's current execution context.

    A step is added before the wrapped work starts and completed PASSED when
    it returns. When it raises, the step is completed SKIPPED for
    ``pytest.skip()`` and FAILED otherwise (``pytest.fail()`` included), with
    the exception message. The exception is always re-raised. Nested calls
    produce a flat sequence.
    """

    def __init__(self, store: ContextPropagationStore) -> None:
        self.store = store

    @contextmanager
    def step(self, name: str, description: Optional[str] = None) -> Iterator[Step]:
        """Record the body of a ``with`` block as a step."""
        context = self.store.current()
        recorded = context.add_step(name, description)
        started = time.perf_counter()

        logger.debug(f"Starting step: {name}", extra={"step_name": name})
        try:
            yield recorded
        except BaseException as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            if isinstance(e, pytest.skip.Exception):
                status = StepStatus.SKIPPED
            else:
                status = StepStatus.FAILED
            context.complete_step(recorded, status, str(e))
            logger.debug(
                f"Step {status.value}: {name}, Duration: {elapsed_ms:.1f}ms",
                extra={"step_name": name},
                exc_info=True,
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        context.complete_step(recorded, StepStatus.PASSED)
        log_performance_metric("step_duration", elapsed_ms, context={"step_name": name})

    def execute_step(
        self,
        name: str,
        action: Callable[[], T],
        description: Optional[str] = None,
    ) -> T:
        """Run ``action`` inside a step and return its result."""
        with self.step(name, description):
            return action()

    async def execute_step_async(
        self,
        name: str,
        action: Callable[[], Awaitable[T]],
        description: Optional[str] = None,
    ) -> T:
        """Await ``action()`` inside a step and return its result."""
        with self.step(name, description):
            return await action()

    def ui_step(
        self,
        action: Callable[[], T],
        element_description: str,
        action_description: str,
    ) -> T:
        """Step for an interaction with a page element."""
        return self.execute_step(
            f"{action_description} {element_description}",
            action,
            f"UI Interaction: {action_description} on {element_description}",
        )

    def api_step(
        self,
        action: Callable[[], T],
        http_method: str,
        endpoint: str,
    ) -> T:
        """Step for one HTTP request."""
        method = http_method.upper()
        return self.execute_step(
            f"{method} {endpoint}",
            action,
            f"API Request: {method} {endpoint}",
        )

    def verification_step(self, action: Callable[[], Any], verification_description: str) -> Any:
        """Step for an assertion."""
        return self.execute_step(
            f"Verify {verification_description}",
            action,
            f"Verification: {verification_description}",
        )

    def data_preparation_step(self, action: Callable[[], Any], data_description: str) -> Any:
        """Step for test data setup."""
        return self.execute_step(
            f"Prepare {data_description}",
            action,
            f"Data Preparation: {data_description}",
        )
