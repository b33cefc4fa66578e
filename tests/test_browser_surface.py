"""
Tests for the Playwright visual surface adapter.
"""

from unittest.mock import MagicMock

from testscribe.browser.surface import PlaywrightSurface
from testscribe.core.interfaces import VisualSurface


def make_page(browser_name="chromium", version="120.0.6099.28"):
    page = MagicMock()
    page.screenshot.return_value = b"\x89PNG-bytes"
    page.context.browser.browser_type.name = browser_name
    page.context.browser.version = version
    return page


class TestPlaywrightSurface:
    """Tests for PlaywrightSurface."""

    def test_is_visual_surface(self):
        assert isinstance(PlaywrightSurface(make_page()), VisualSurface)

    def test_screenshot(self):
        page = make_page()
        surface = PlaywrightSurface(page, full_page=True)

        assert surface.screenshot() == b"\x89PNG-bytes"
        page.screenshot.assert_called_once_with(type="png", full_page=True)

    def test_capabilities(self):
        surface = PlaywrightSurface(make_page("firefox", "121.0"))

        assert surface.get_capability("browserName") == "firefox"
        assert surface.get_capability("browserVersion") == "121.0"
        assert surface.get_capability("version") is None

    def test_persistent_context_has_no_browser(self):
        page = make_page()
        page.context.browser = None

        assert PlaywrightSurface(page).get_capability("browserName") is None
