"""Tests for logging configuration and helpers."""

import json
import logging

import pytest

from tradejournal.config.logging import (
    ConsoleFormatter,
    JournalEventLogger,
    StructuredFormatter,
    configure_logging,
    log_performance,
    log_with_context,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(message="hello", **extra):
    record = logging.LogRecord("tradejournal.test", logging.WARNING, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for the log formatters."""

    def test_structured_formatter_emits_json_with_context(self):
        formatter = StructuredFormatter(service_name="journal-test", environment="test")
        document = json.loads(formatter.format(_record(ctx_entity_id="abc")))

        assert document["message"] == "hello"
        assert document["level"] == "WARNING"
        assert document["service"] == "journal-test"
        assert document["entity_id"] == "abc"

    def test_console_formatter_appends_context(self):
        line = ConsoleFormatter().format(_record(ctx_path="trades/x.json"))
        assert "tradejournal.test - hello" in line
        assert line.endswith("| path=trades/x.json")


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_sets_level_and_handler(self, restore_root_logger):
        configure_logging(level="debug", json_format=True)
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    def test_log_file_is_json(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "journal.log"
        configure_logging(level="INFO", log_file=str(log_file))
        logging.getLogger("tradejournal.test").info("written to file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["message"] == "written to file"
        for handler in restore_root_logger.handlers:
            handler.close()


class TestHelpers:
    """Tests for the performance decorator and event logger."""

    def test_slow_operation_warns(self, caplog):
        @log_performance(threshold_ms=0.0, log_result=True)
        def scan():
            return [1, 2, 3]

        with caplog.at_level(logging.DEBUG):
            assert scan() == [1, 2, 3]

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "Slow operation" in record.getMessage()
        assert record.ctx_result_count == 3

    def test_fast_operation_is_debug(self, caplog):
        @log_performance(threshold_ms=60_000)
        def scan():
            return None

        with caplog.at_level(logging.DEBUG):
            scan()
        assert caplog.records[-1].levelno == logging.DEBUG

    def test_errors_propagate(self):
        @log_performance()
        def broken():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            broken()

    def test_log_with_context(self, caplog):
        logger = logging.getLogger("tradejournal.test")
        with caplog.at_level(logging.INFO):
            log_with_context(logger, logging.INFO, "saved", entity_id="abc")
        assert caplog.records[-1].ctx_entity_id == "abc"

    def test_event_logger(self, caplog):
        events = JournalEventLogger("tradejournal.test.events")
        with caplog.at_level(logging.INFO):
            events.log_saved("trade", "abc", "trades/2024/x.json", created=True)
            events.log_skipped("trades/2024/bad.json", ValueError("bad json"))

        saved, skipped = caplog.records[-2:]
        assert saved.getMessage() == "trade created: abc"
        assert saved.ctx_event == "trade_created"
        assert skipped.levelno == logging.WARNING
        assert skipped.getMessage() == "Skipping trades/2024/bad.json: bad json"
