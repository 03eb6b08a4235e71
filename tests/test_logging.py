"""Tests for the structured logging system (labor_kernel/logging_config.py)."""

import json
import logging
import threading
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from labor_kernel.exceptions import WagePeriodExistsError
from labor_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Start each test unconfigured; restore the suite configuration after."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


@pytest.fixture
def capture():
    handler, stream = _make_handler()
    configure_logging(handler=handler)
    return stream


# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:

    def test_basic_json_output(self, capture):
        get_logger("test").info("hello")

        record = _parse_all_logs(capture)[0]
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "labor_kernel.test"
        assert "ts" in record

    def test_extra_fields_serialized(self, capture):
        contractor_id = uuid4()
        get_logger("test").info(
            "summary",
            extra={
                "contractor_id": contractor_id,
                "net_wages": Decimal("35850.00"),
                "late_days": 1,
            },
        )

        record = _parse_all_logs(capture)[0]
        assert record["contractor_id"] == str(contractor_id)
        assert record["net_wages"] == "35850.00"
        assert record["late_days"] == 1

    def test_context_fields_included(self, capture):
        LogContext.set(period_id="p-1", actor_id="u-1")
        get_logger("test").info("bound")

        record = _parse_all_logs(capture)[0]
        assert record["period_id"] == "p-1"
        assert record["actor_id"] == "u-1"

    def test_no_context_fields_when_empty(self, capture):
        get_logger("test").info("bare")
        record = _parse_all_logs(capture)[0]
        assert "period_id" not in record
        assert "correlation_id" not in record

    def test_kernel_exception_fields(self, capture):
        try:
            raise WagePeriodExistsError("PRD-2025-01-01", "site-1")
        except WagePeriodExistsError:
            get_logger("test").error("create_failed", exc_info=True)

        record = _parse_all_logs(capture)[0]
        assert record["exc_type"] == "WagePeriodExistsError"
        assert record["exc_code"] == "WAGE_PERIOD_EXISTS"
        assert record["exc_period_code"] == "PRD-2025-01-01"
        assert record["exc_project_id"] == "site-1"
        assert "traceback" in record

    def test_debug_filtered_at_info(self, capture):
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        assert [r["message"] for r in _parse_all_logs(capture)] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_is_additive(self):
        LogContext.set(correlation_id="a")
        LogContext.set(period_id="b")
        assert LogContext.get_all() == {"correlation_id": "a", "period_id": "b"}

    def test_clear(self):
        LogContext.set(contractor_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(period_id="outer")
        with LogContext.bind(period_id="inner", actor_id="u"):
            assert LogContext.get_all() == {"period_id": "inner", "actor_id": "u"}
        assert LogContext.get_all() == {"period_id": "outer"}

    def test_bind_restores_after_exception(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(period_id="temp"):
                raise RuntimeError("boom")
        assert "period_id" not in LogContext.get_all()


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        root = logging.getLogger("labor_kernel")
        before = list(root.handlers)
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        added = [h for h in root.handlers if h not in before]
        assert added == [h1]

    def test_concurrent_callers_see_a_handler(self):
        root = logging.getLogger("labor_kernel")
        before = list(root.handlers)
        handlers = [_make_handler()[0] for _ in range(8)]
        barrier = threading.Barrier(len(handlers))
        attached_on_return = []

        def configure(handler):
            barrier.wait()
            configure_logging(handler=handler)
            attached_on_return.append(any(h in handlers for h in root.handlers))

        threads = [threading.Thread(target=configure, args=(h,)) for h in handlers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert attached_on_return == [True] * len(handlers)
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1 and added[0] in handlers

    def test_reset_keeps_foreign_handlers(self):
        root = logging.getLogger("labor_kernel")
        foreign, _ = _make_handler()
        root.addHandler(foreign)
        try:
            ours, _ = _make_handler()
            configure_logging(handler=ours)
            reset_logging()
            assert foreign in root.handlers
            assert ours not in root.handlers
        finally:
            root.removeHandler(foreign)

    def test_child_loggers_inherit(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("engines.tracer").debug("hierarchy_test")

        record = _parse_all_logs(stream)[0]
        assert record["logger"] == "labor_kernel.engines.tracer"
