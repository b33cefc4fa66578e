"""
pytest integration for TestScribe.

Reporting is opt-in: pass ``--testscribe`` to bind the reporting lifecycle
to the session. Tests can tag themselves with::

    @pytest.mark.testscribe(severity="critical", category="Checkout")

and reach the manager through the ``reporting`` fixture.
"""

from pathlib import Path
from typing import Optional

import pytest

from testscribe.config.settings import Settings
from testscribe.core.types import ScreenshotMode, SeverityLevel
from testscribe.monitoring.logger import get_logger
from testscribe.reporting.context import DEFAULT_CATEGORY
from testscribe.reporting.manager import ReportingManager

logger = get_logger(__name__)

manager_key = pytest.StashKey[ReportingManager]()
_ended_key = pytest.StashKey[bool]()


def pytest_addoption(parser):
    group = parser.getgroup("testscribe", "test execution reporting")
    group.addoption(
        "--testscribe",
        action="store_true",
        default=False,
        help="Record steps, attachments and screenshots into the results directory.",
    )
    group.addoption(
        "--testscribe-screenshots",
        choices=[mode.value for mode in ScreenshotMode],
        default=None,
        help="Override the screenshot mode for this run.",
    )
    group.addoption(
        "--testscribe-results-dir",
        default=None,
        help="Results directory name under the root directory.",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "testscribe(severity, category): reporting metadata for a test",
    )
    if not config.getoption("--testscribe"):
        return

    overrides = {}
    mode = config.getoption("--testscribe-screenshots")
    if mode:
        overrides["screenshot_mode"] = mode
    results_dir = config.getoption("--testscribe-results-dir")
    if results_dir:
        overrides["results_dir_name"] = results_dir

    manager = ReportingManager(Settings(**overrides), working_dir=Path(config.rootpath))
    manager.initialize()
    config.stash[manager_key] = manager
    logger.debug(f"TestScribe reporting enabled, results: {manager.results_dir}")


def get_manager(config) -> Optional[ReportingManager]:
    """Manager bound to a pytest config, or None when reporting is off."""
    return config.stash.get(manager_key, None)


def pytest_sessionstart(session):
    manager = get_manager(session.config)
    if manager is not None:
        manager.on_suite_start()


def pytest_sessionfinish(session, exitstatus):
    manager = get_manager(session.config)
    if manager is not None and manager.is_initialized:
        manager.on_suite_end()


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_setup(item):
    manager = get_manager(item.config)
    if manager is None:
        return

    marker = item.get_closest_marker("testscribe")
    severity = SeverityLevel.NORMAL
    category = DEFAULT_CATEGORY
    if marker is not None:
        severity = SeverityLevel(marker.kwargs.get("severity", severity))
        category = marker.kwargs.get("category", category)

    manager.on_test_start(
        item.nodeid,
        description=_describe(item),
        severity=severity,
        category=category,
    )
    item.stash[_ended_key] = False


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()

    manager = get_manager(item.config)
    if manager is None or item.stash.get(_ended_key, True):
        return

    # The call phase decides the outcome; a setup phase that did not pass
    # means the body never ran
    if report.when == "call" or (report.when == "setup" and not report.passed):
        item.stash[_ended_key] = True
        manager.on_test_end(item.nodeid, report.outcome.capitalize())


@pytest.fixture
def reporting(request) -> ReportingManager:
    """The session's reporting manager."""
    manager = get_manager(request.config)
    if manager is None:
        pytest.skip("TestScribe reporting is not enabled (use --testscribe)")
    return manager


def _describe(item) -> Optional[str]:
    function = getattr(item, "function", None)
    doc = getattr(function, "__doc__", None)
    if not doc:
        return None
    return doc.strip().splitlines()[0]
