"""Tests for thread-local log context."""

import logging
import threading

from trip_engine.trip_logging import ContextFilter, LogContext, log_context, log_trip_context


def make_record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, "test.py", 1, "msg", (), None)


class TestLogContext:
    def test_context_fields_injected(self):
        with log_context(account_id="acct-1"):
            record = make_record()
            ContextFilter().filter(record)

        assert record.account_id == "acct-1"

    def test_cleared_on_exit(self):
        with log_context(account_id="acct-1"):
            pass
        assert LogContext.get() == {}

    def test_explicit_record_attribute_wins(self):
        record = make_record()
        record.trip_id = "explicit"
        with log_context(trip_id="from-context"):
            ContextFilter().filter(record)

        assert record.trip_id == "explicit"

    def test_trip_context_defaults_correlation_id(self):
        with log_trip_context("TRIP42", phase="ongoing"):
            context = dict(LogContext.get())

        assert context == {"trip_id": "TRIP42", "correlation_id": "TRIP42", "phase": "ongoing"}

    def test_context_is_thread_local(self):
        seen = {}

        def worker():
            seen["context"] = dict(LogContext.get())

        with log_context(trip_id="main-thread"):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert seen["context"] == {}

    def test_nested_context_restores_outer_fields(self):
        with log_context(account_id="acct-1"):
            with log_trip_context("TRIP42", phase="drop"):
                inner = LogContext.get()
            outer = LogContext.get()

        assert inner["account_id"] == "acct-1"
        assert inner["trip_id"] == "TRIP42"
        assert outer == {"account_id": "acct-1"}

    def test_none_fields_are_skipped(self):
        with log_context(account_id=None, phase="pickup"):
            context = LogContext.get()

        assert context == {"phase": "pickup"}

    def test_context_restored_after_exception(self):
        with log_context(account_id="acct-1"):
            try:
                with log_context(trip_id="TRIP1"):
                    raise RuntimeError("boom")
            except RuntimeError:
                pass
            assert LogContext.get() == {"account_id": "acct-1"}
