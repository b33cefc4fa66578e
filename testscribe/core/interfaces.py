"""
Core interfaces and abstract base classes for the TestScribe engine.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class VisualSurface(ABC):
    """Abstract interface for a browser handle that can produce screenshots."""

    @abstractmethod
    def screenshot(self) -> bytes:
        """Capture the current viewport and return the encoded image bytes."""
        pass

    @abstractmethod
    def get_capability(self, name: str) -> Optional[Any]:
        """
        Look up a negotiated session capability.

        Args:
            name: Capability name (e.g. ``browserName``, ``browserVersion``)

        Returns:
            Capability value, or None if the session did not report it
        """
        pass


class ConfigProvider(ABC):
    """Abstract interface for configuration management."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        pass

    @abstractmethod
    def get_required(self, key: str) -> Any:
        """Get required configuration value, raise if missing."""
        pass

    @abstractmethod
    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        pass
