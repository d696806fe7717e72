"""Unit tests for structured logging and request correlation."""

import json
import logging

from inkwell.logging_config import (
    JsonFormatter,
    RequestIdFilter,
    get_request_id,
    request_context,
)


def _record(msg: str = "Invitation accepted", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="inkwell.services.publication_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestContext:

    def test_binds_and_resets(self):
        assert get_request_id() is None
        with request_context("req-42"):
            assert get_request_id() == "req-42"
        assert get_request_id() is None

    def test_filter_injects_request_id(self):
        record = _record()
        with request_context("req-7"):
            RequestIdFilter().filter(record)
        assert record.request_id == "req-7"

    def test_filter_placeholder_without_context(self):
        record = _record()
        RequestIdFilter().filter(record)
        assert record.request_id == "-"


class TestJsonFormatter:

    def test_includes_extra_fields_and_request_id(self):
        record = _record(invitation_id="abc", rejected_count=2)
        with request_context("req-9"):
            RequestIdFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["message"] == "Invitation accepted"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-9"
        assert payload["invitation_id"] == "abc"
        assert payload["rejected_count"] == 2

    def test_non_serializable_extra_is_stringified(self):
        record = _record(thing=object())
        payload = json.loads(JsonFormatter().format(record))
        assert payload["thing"].startswith("<object object")
