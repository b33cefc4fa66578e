"""
Attachment helpers and the extension to MIME type mapping.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from testscribe.monitoring.logger import get_logger
from testscribe.reporting.context import ContextPropagationStore

logger = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: Dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "txt": "text/plain",
    "csv": "text/csv",
    "pdf": "application/pdf",
}


def get_mime_type(extension: Optional[str]) -> str:
    """Return the MIME type for a file extension (``png`` or ``.png``)."""
    if not extension:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(extension.lstrip(".").lower(), DEFAULT_MIME_TYPE)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, Path):
        return str(value)
    return str(value)


def to_json_bytes(data: Any) -> bytes:
    """Serialize data as indented UTF-8 JSON."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return json.dumps(data, indent=2, default=_json_default).encode("utf-8")


class AttachmentHelper:
    """
    Convenience methods for attaching artifacts to the current test.

    Every method swallows and logs its own failure: a broken attachment
    never fails the test it belongs to.
    """

    def __init__(self, store: ContextPropagationStore) -> None:
        self.store = store

    def add_screenshot(self, screenshot: bytes, name: str = "Screenshot") -> bool:
        """Attach PNG screenshot bytes."""
        try:
            self.store.current().add_attachment(name, screenshot, "image/png", "png")
            logger.debug(f"Screenshot attached: {name}, Size: {len(screenshot)} bytes")
            return True
        except Exception as e:
            logger.warning(f"Failed to attach screenshot {name}: {e}", exc_info=True)
            return False

    def add_screenshot_from_file(
        self,
        file_path: Union[str, Path],
        name: str = "Screenshot",
    ) -> bool:
        """Attach an image file, choosing the MIME type from its extension."""
        path = Path(file_path)
        try:
            if not path.exists():
                logger.warning(f"Screenshot file not found: {path}")
                return False

            content = path.read_bytes()
            extension = path.suffix.lstrip(".")
            self.store.current().add_attachment(
                name, content, get_mime_type(extension), extension
            )
            logger.debug(f"Screenshot attached from file: {name}, File: {path}")
            return True
        except Exception as e:
            logger.warning(f"Failed to attach screenshot file {path}: {e}", exc_info=True)
            return False

    def add_json_attachment(self, data: Any, name: str = "Data") -> bool:
        """Attach data serialized as indented JSON."""
        try:
            content = to_json_bytes(data)
            self.store.current().add_attachment(name, content, "application/json", "json")
            logger.debug(f"JSON data attached: {name}, Size: {len(content)} bytes")
            return True
        except Exception as e:
            logger.warning(f"Failed to attach JSON data {name}: {e}", exc_info=True)
            return False

    def add_html_attachment(self, html: str, name: str = "Page") -> bool:
        """Attach an HTML document."""
        try:
            content = html.encode("utf-8")
            self.store.current().add_attachment(name, content, "text/html", "html")
            logger.debug(f"HTML content attached: {name}, Size: {len(content)} bytes")
            return True
        except Exception as e:
            logger.warning(f"Failed to attach HTML content {name}: {e}", exc_info=True)
            return False

    def add_log_attachment(self, log_content: str, name: str = "Test Log") -> bool:
        """Attach a log excerpt as a ``.log`` text attachment."""
        try:
            self.store.current().add_text_attachment(name, log_content, "log")
            return True
        except Exception as e:
            logger.warning(f"Failed to attach log content {name}: {e}", exc_info=True)
            return False

    def add_text_file_attachment(
        self,
        file_path: Union[str, Path],
        name: str = "File",
    ) -> bool:
        """Attach the contents of a text file."""
        path = Path(file_path)
        try:
            if not path.exists():
                logger.warning(f"Text file not found: {path}")
                return False

            content = path.read_text(encoding="utf-8")
            extension = path.suffix.lstrip(".") or "txt"
            self.store.current().add_text_attachment(name, content, extension)
            return True
        except Exception as e:
            logger.warning(f"Failed to attach text file {path}: {e}", exc_info=True)
            return False

    def add_api_request_response_attachment(
        self,
        http_method: str,
        url: str,
        request_body: Optional[str],
        response_body: Optional[str],
        status_code: int,
        headers: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Attach one HTTP exchange as JSON."""
        method = http_method.upper()
        payload = {
            "request": {
                "method": method,
                "url": url,
                "headers": headers,
                "body": request_body,
            },
            "response": {
                "status_code": status_code,
                "headers": headers,
                "body": response_body,
            },
            "timestamp": datetime.now(timezone.utc),
        }
        return self.add_json_attachment(payload, f"API Request-Response ({method} {url})")

    def add_test_data_attachment(self, test_data: Any, name: str = "Test Data") -> bool:
        """Attach the data a test ran with."""
        return self.add_json_attachment(test_data, name)

    def add_performance_metrics_attachment(
        self,
        metrics: Any,
        name: str = "Performance Metrics",
    ) -> bool:
        """Attach performance measurements."""
        return self.add_json_attachment(metrics, name)
