"""
tests/test_log_buffer.py — In-Memory Log Tail Tests
====================================================
"""

from __future__ import annotations

import logging

import pytest

from triplace.services import log_buffer
from triplace.services.log_buffer import LogBuffer, LogEntry, RingBufferHandler


def _entry(level: str, name: str = "triplace.test", message: str = "msg") -> LogEntry:
    return LogEntry(timestamp="2026-01-01T00:00:00+00:00", level=level, logger=name, message=message)


class TestLogBuffer:
    def test_capacity_drops_oldest(self):
        buf = LogBuffer(capacity=3)
        for i in range(5):
            buf.append(_entry("INFO", message=str(i)))
        assert buf.size == 3
        assert [e["message"] for e in buf.get_entries()] == ["2", "3", "4"]

    def test_filters(self):
        buf = LogBuffer()
        buf.append(_entry("DEBUG"))
        buf.append(_entry("WARNING", name="triplace.services.x"))
        buf.append(_entry("ERROR", name="uvicorn.error"))

        assert [e["level"] for e in buf.get_entries(level="warning")] == ["WARNING", "ERROR"]
        by_prefix = buf.get_entries(logger_prefix="triplace.services")
        assert [e["logger"] for e in by_prefix] == ["triplace.services.x"]
        assert len(buf.get_entries(tail=1)) == 1

    def test_unknown_level_filter_keeps_all(self):
        buf = LogBuffer()
        buf.append(_entry("DEBUG"))
        assert len(buf.get_entries(level="LOUD")) == 1

    def test_clear(self):
        buf = LogBuffer()
        buf.append(_entry("INFO"))
        buf.clear()
        assert buf.size == 0


class TestRingBufferHandler:
    def test_captures_records(self):
        buf = LogBuffer()
        log = logging.getLogger("triplace.test.handler")
        handler = RingBufferHandler(buf, level=logging.INFO)
        log.addHandler(handler)
        try:
            log.warning("disk %s", "full")
            log.debug("ignored")
        finally:
            log.removeHandler(handler)
        entries = buf.get_entries()
        assert len(entries) == 1
        assert entries[0]["message"] == "disk full"
        assert entries[0]["level"] == "WARNING"


class TestCaptureLevel:
    @pytest.fixture(autouse=True)
    def _restore_level(self):
        yield
        log_buffer.set_capture_level("DEBUG")

    def test_install_is_idempotent(self):
        first = log_buffer.install_handler()
        second = log_buffer.install_handler()
        assert first is second

    def test_set_capture_level(self):
        log_buffer.install_handler()
        assert log_buffer.set_capture_level("error") == "ERROR"
        assert log_buffer.get_current_level() == "ERROR"

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid level"):
            log_buffer.set_capture_level("LOUD")
