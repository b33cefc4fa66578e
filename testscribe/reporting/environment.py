"""
Run environment description written to the results directory.
"""

import platform
from pathlib import Path
from typing import Optional, Tuple

import pytest

from testscribe.config.settings import Settings
from testscribe.core.interfaces import VisualSurface
from testscribe.core.types import EnvironmentInfo
from testscribe.monitoring.logger import get_logger
from testscribe.reporting.file_store import RetrySafeFileStore

logger = get_logger(__name__)

ENVIRONMENT_FILE_NAME = "environment.properties"
UNKNOWN = "Unknown"


class EnvironmentInfoBuilder:
    """Builds ``EnvironmentInfo`` from settings and an optional browser handle."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def build(self, surface: Optional[VisualSurface] = None) -> EnvironmentInfo:
        """
        Describe the current run environment.

        Browser name and version are only reported when a visual surface is
        supplied. The version prefers the W3C ``browserVersion`` capability
        and falls back to the legacy ``version`` one.
        """
        browser = None
        browser_version = None
        if surface is not None:
            browser, browser_version = self._browser_details(surface)

        return EnvironmentInfo(
            operating_system=platform.system() or UNKNOWN,
            os_version=platform.release() or None,
            framework="pytest",
            framework_version=pytest.__version__,
            language=f"Python {platform.python_version()}",
            base_url=self.settings.base_url,
            test_environment=self.settings.environment_name,
            browser=browser,
            browser_version=browser_version,
        )

    @staticmethod
    def _browser_details(surface: VisualSurface) -> Tuple[str, str]:
        try:
            name = surface.get_capability("browserName")
            version = surface.get_capability("browserVersion")
            if version is None:
                version = surface.get_capability("version")
        except Exception as e:
            logger.warning(f"Failed to read browser capabilities: {e}")
            return UNKNOWN, UNKNOWN

        return (
            str(name) if name is not None else UNKNOWN,
            str(version) if version is not None else UNKNOWN,
        )


def write_environment_file(
    results_dir: Path,
    info: EnvironmentInfo,
    store: RetrySafeFileStore,
) -> Path:
    """
    Write ``environment.properties`` into the results directory.

    Overwrites any previous content.

    Raises:
        FileStoreError: If the file cannot be written
    """
    path = Path(results_dir) / ENVIRONMENT_FILE_NAME
    content = "\n".join(info.to_properties()) + "\n"
    store.write_text(path, content)
    logger.debug(f"Environment information written to {path}")
    return path
