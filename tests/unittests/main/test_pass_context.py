"""Unit tests for the discovery pass logging context."""

import json
import logging
from datetime import datetime, timezone

from mdwatch.main.logging import PassJSONFormatter, get_logger
from mdwatch.main.pass_context import current_pass, end_pass, set_watermark, start_pass

SINCE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def record(message: str = "hello %s", args=("world",)) -> logging.LogRecord:
    return logging.LogRecord("mdwatch.test", logging.INFO, __file__, 1, message, args, None)


class TestPassContext:
    def test_no_pass_by_default(self):
        end_pass()

        assert current_pass() is None

    def test_start_pass_generates_an_id(self):
        context = start_pass()

        assert current_pass() is context
        assert len(context.pass_id) == 32
        assert context.log_fields() == {"pass_id": context.pass_id}
        end_pass()

    def test_watermark_is_added_to_running_pass(self):
        start_pass("abc")

        set_watermark(SINCE)

        assert current_pass().since == SINCE
        assert current_pass().log_fields() == {
            "pass_id": "abc",
            "since": "2024-05-01T12:00:00+00:00",
        }
        end_pass()
        assert current_pass() is None

    def test_watermark_outside_a_pass_is_ignored(self):
        end_pass()

        set_watermark(SINCE)

        assert current_pass() is None


class TestPassJSONFormatter:
    def test_includes_pass_and_extra_fields(self):
        start_pass("abc")
        set_watermark(SINCE)
        log_record = record()
        log_record.chapter_id = "chapter-1"

        log = json.loads(PassJSONFormatter().format(log_record))
        end_pass()

        assert log["message"] == "hello world"
        assert log["level"] == "info"
        assert log["logger"] == "mdwatch.test"
        assert log["pass_id"] == "abc"
        assert log["since"] == "2024-05-01T12:00:00+00:00"
        assert log["chapter_id"] == "chapter-1"
        assert "lineno" not in log

    def test_without_a_pass(self):
        end_pass()

        log = json.loads(PassJSONFormatter().format(record("plain", ())))

        assert "pass_id" not in log
        assert log["message"] == "plain"


def test_get_logger_adds_one_handler():
    first = get_logger("mdwatch.tests.handlers")
    second = get_logger("mdwatch.tests.handlers")

    assert first is second
    assert len(first.handlers) == 1
    assert first.propagate is False
