"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

from shortlink.core.logger import JSONFormatter, RequestIdFilter, configure_logging


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("shortlink.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    configure_logging("DEBUG")
    try:
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("apscheduler").level == logging.WARNING
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, JSONFormatter)
    finally:
        configure_logging("WARNING")


def test_formatter_emits_json_with_extras() -> None:
    record = _record("links.created", link_id="abc", short_code="xyz", unrelated="skip")

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "links.created"
    assert payload["level"] == "INFO"
    assert payload["link_id"] == "abc"
    assert payload["short_code"] == "xyz"
    assert "unrelated" not in payload


def test_formatter_redacts_secrets() -> None:
    record = _record(password="hunter2", refresh_token="rt", token_hash="deadbeef")

    rendered = JSONFormatter().format(record)

    assert "hunter2" not in rendered
    assert "deadbeef" not in rendered
    assert json.loads(rendered)["password"] == "[redacted]"


def test_request_id_outside_request_is_none() -> None:
    record = _record()

    assert RequestIdFilter().filter(record) is True
    assert record.request_id is None


def test_request_id_follows_header(app) -> None:
    record = _record()

    with app.test_request_context("/", headers={"X-Request-ID": "req-123"}):
        RequestIdFilter().filter(record)

    assert record.request_id == "req-123"
