"""
Browser adapters for screenshot capture.
"""

from testscribe.browser.surface import PlaywrightSurface

__all__ = ["PlaywrightSurface"]
