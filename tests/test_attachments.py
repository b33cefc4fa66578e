"""
Tests for attachment helpers and MIME type lookup.
"""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from testscribe.core.types import EnvironmentInfo
from testscribe.reporting.attachments import (
    DEFAULT_MIME_TYPE,
    AttachmentHelper,
    get_mime_type,
    to_json_bytes,
)


@pytest.fixture
def helper(store):
    return AttachmentHelper(store)


class TestMimeTypes:
    """Tests for the extension to MIME type table."""

    @pytest.mark.parametrize("extension, expected", [
        ("png", "image/png"),
        ("jpg", "image/jpeg"),
        ("jpeg", "image/jpeg"),
        ("gif", "image/gif"),
        ("bmp", "image/bmp"),
        ("svg", "image/svg+xml"),
        ("html", "text/html"),
        ("htm", "text/html"),
        ("css", "text/css"),
        ("js", "application/javascript"),
        ("json", "application/json"),
        ("xml", "application/xml"),
        ("txt", "text/plain"),
        ("csv", "text/csv"),
        ("pdf", "application/pdf"),
    ])
    def test_known_extensions(self, extension, expected):
        assert get_mime_type(extension) == expected

    def test_case_and_dot_insensitive(self):
        assert get_mime_type(".PNG") == "image/png"
        assert get_mime_type("Json") == "application/json"

    @pytest.mark.parametrize("extension", ["", None, "zip", "log"])
    def test_unknown_extensions(self, extension):
        assert get_mime_type(extension) == DEFAULT_MIME_TYPE


class TestJsonSerialization:
    """Tests for to_json_bytes."""

    def test_indented_output(self):
        content = to_json_bytes({"a": 1})
        assert content == b'{\n  "a": 1\n}'

    def test_handles_models_and_datetimes(self):
        info = EnvironmentInfo(operating_system="Linux")
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        data = json.loads(to_json_bytes({"env": info, "at": moment, "tags": {"b", "a"}}))

        assert data["env"]["operating_system"] == "Linux"
        assert data["at"] == "2024-01-02T03:04:05+00:00"
        assert data["tags"] == ["a", "b"]


class TestAttachmentHelper:
    """Tests for AttachmentHelper."""

    def test_add_screenshot(self, helper, store):
        assert helper.add_screenshot(b"\x89PNG", "Cart page") is True

        attachment = store.current().attachments[0]
        assert attachment.name == "Cart page"
        assert attachment.mime_type == "image/png"
        assert attachment.extension == "png"

    def test_add_screenshot_from_file(self, helper, store, tmp_path):
        image = tmp_path / "shot.JPG"
        image.write_bytes(b"jpeg-bytes")

        assert helper.add_screenshot_from_file(image) is True

        attachment = store.current().attachments[0]
        assert attachment.mime_type == "image/jpeg"
        assert attachment.content == b"jpeg-bytes"

    def test_add_screenshot_from_missing_file(self, helper, store, tmp_path):
        assert helper.add_screenshot_from_file(tmp_path / "nope.png") is False
        assert store.current().attachments == ()

    def test_add_json_attachment(self, helper, store):
        assert helper.add_json_attachment({"order": 17}, "Order") is True

        attachment = store.current().attachments[0]
        assert attachment.mime_type == "application/json"
        assert json.loads(attachment.content) == {"order": 17}

    def test_add_html_attachment(self, helper, store):
        helper.add_html_attachment("<h1>Cart</h1>")

        attachment = store.current().attachments[0]
        assert attachment.name == "Page"
        assert attachment.mime_type == "text/html"
        assert attachment.extension == "html"

    def test_add_log_attachment(self, helper, store):
        helper.add_log_attachment("line one\nline two")

        attachment = store.current().attachments[0]
        assert attachment.name == "Test Log"
        assert attachment.mime_type == "text/plain"
        assert attachment.extension == "log"

    def test_add_text_file_attachment(self, helper, store, tmp_path):
        source = tmp_path / "payload.csv"
        source.write_text("a,b\n1,2\n")

        assert helper.add_text_file_attachment(source, "Payload") is True

        attachment = store.current().attachments[0]
        assert attachment.extension == "csv"
        assert attachment.content == b"a,b\n1,2\n"

    def test_add_api_request_response_attachment(self, helper, store):
        helper.add_api_request_response_attachment(
            "post", "/orders", '{"sku": 1}', '{"id": 9}', 201, {"Accept": "json"}
        )

        attachment = store.current().attachments[0]
        assert attachment.name == "API Request-Response (POST /orders)"
        payload = json.loads(attachment.content)
        assert payload["request"]["method"] == "POST"
        assert payload["response"]["status_code"] == 201
        assert "timestamp" in payload

    def test_test_data_and_metrics(self, helper, store):
        helper.add_test_data_attachment({"user": "alice"})
        helper.add_performance_metrics_attachment({"load_ms": 120})

        names = [a.name for a in store.current().attachments]
        assert names == ["Test Data", "Performance Metrics"]

    def test_failure_is_swallowed(self, helper, store):
        with patch.object(store, "current", side_effect=RuntimeError("no context")):
            assert helper.add_json_attachment({"x": 1}) is False
            assert helper.add_screenshot(b"png") is False
