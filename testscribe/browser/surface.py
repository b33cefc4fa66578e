"""
Playwright page adapter for the visual surface interface.
"""

from typing import Any, Dict, Optional

from playwright.sync_api import Page

from testscribe.core.interfaces import VisualSurface
from testscribe.monitoring.logger import get_logger


class PlaywrightSurface(VisualSurface):
    """Exposes a Playwright page as a screenshot source."""

    def __init__(self, page: Page, full_page: bool = False) -> None:
        """
        Initialize the adapter.

        Args:
            page: Playwright page to capture
            full_page: Capture the full scrollable page instead of the viewport
        """
        self.page = page
        self.full_page = full_page
        self.logger = get_logger("browser.surface")

    def screenshot(self) -> bytes:
        """Capture the page as PNG bytes."""
        content = self.page.screenshot(type="png", full_page=self.full_page)
        self.logger.debug(f"Page screenshot taken, Size: {len(content)} bytes")
        return content

    def get_capability(self, name: str) -> Optional[Any]:
        """Map W3C capability names onto the page's browser."""
        return self.capabilities().get(name)

    def capabilities(self) -> Dict[str, Any]:
        browser = self.page.context.browser
        if browser is None:
            # Persistent contexts have no browser object
            return {}

        return {
            "browserName": browser.browser_type.name,
            "browserVersion": browser.version,
        }
