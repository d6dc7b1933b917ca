"""Tests for logging setup and scoped context."""

from __future__ import annotations

import logging

import pytest
import structlog

from ecoflux.dashboard.log_buffer import RingBufferHandler, log_buffer
from ecoflux.logging.context import log_context
from ecoflux.logging.structured import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    log_buffer.clear()


class TestLogContext:
    def test_fields_bound_inside_block_only(self) -> None:
        with log_context(tick=7):
            assert structlog.contextvars.get_contextvars()["tick"] == 7
        assert "tick" not in structlog.contextvars.get_contextvars()

    def test_unbound_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            with log_context(tick=1):
                raise RuntimeError("boom")
        assert "tick" not in structlog.contextvars.get_contextvars()


class TestSetupLogging:
    def test_records_reach_ring_buffer(self, restore_root_logger) -> None:
        setup_logging(level="INFO", fmt="json")
        log_buffer.clear()
        with log_context(tick=3):
            logging.getLogger("ecoflux.test").warning("battery %s", "low")
        records = log_buffer.get_records(limit=5)
        assert records[0]["level"] == "WARNING"
        assert records[0]["logger"] == "ecoflux.test"
        assert '"tick": 3' in records[0]["message"]
        assert "battery low" in records[0]["message"]

    def test_level_applied(self, restore_root_logger) -> None:
        setup_logging(level="warning", fmt="console")
        assert logging.getLogger().level == logging.WARNING


class TestRingBufferHandler:
    def test_newest_first_and_filtered(self) -> None:
        handler = RingBufferHandler(capacity=3)
        logger = logging.getLogger("ecoflux.ringtest")
        logger.addHandler(handler)
        logger.propagate = False
        logger.setLevel(logging.DEBUG)
        try:
            for i in range(5):
                logger.info("msg %d", i)
            logger.error("bad")
        finally:
            logger.removeHandler(handler)
            logger.propagate = True
        records = handler.get_records()
        assert [r["message"] for r in records] == ["bad", "msg 4", "msg 3"]
        assert [r["message"] for r in handler.get_records(level="error")] == ["bad"]
