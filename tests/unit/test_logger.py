"""
Genome Database Health Checks - Logger Unit Tests

Tests structured JSON logging functionality:
- Logger setup and configuration
- Check lifecycle logging (start, complete, error)
- Finding logging with severity-dependent levels
- Database error logging

The global logger does not propagate to the root logger, so these tests
attach their own handler instead of relying on caplog.
"""

import json
import logging
from io import StringIO

import pytest
from pythonjsonlogger import jsonlogger

from utils.logger import (
    setup_logger,
    logger,
    log_check_start,
    log_check_complete,
    log_check_error,
    log_finding,
    log_database_error,
)


@pytest.fixture
def captured():
    """Attach a JSON handler to the global logger and yield the parsed records."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(jsonlogger.JsonFormatter('%(levelname)s %(message)s'))
    handler.setLevel(logging.DEBUG)
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    def records():
        return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]

    yield records

    logger.removeHandler(handler)
    logger.setLevel(previous_level)


class TestSetupLogger:
    """Test logger setup and configuration."""

    def test_setup_logger_returns_logger_instance(self):
        test_logger = setup_logger("test_logger")

        assert isinstance(test_logger, logging.Logger)
        assert test_logger.name == "test_logger"

    def test_setup_logger_prevents_duplicate_handlers(self):
        """setup_logger() should not add duplicate handlers."""
        test_logger = setup_logger("test_duplicate")
        handler_count_1 = len(test_logger.handlers)

        test_logger = setup_logger("test_duplicate")
        handler_count_2 = len(test_logger.handlers)

        assert handler_count_1 == handler_count_2

    def test_setup_logger_uses_json_formatter(self):
        test_logger = setup_logger("test_json_format")

        assert any(isinstance(h.formatter, jsonlogger.JsonFormatter) for h in test_logger.handlers)
        assert test_logger.propagate is False

    def test_setup_logger_ignores_root_handlers(self):
        """A handler on the root logger must not stop the JSON handler being added."""
        root = logging.getLogger()
        root_handler = logging.StreamHandler(StringIO())
        root.addHandler(root_handler)
        try:
            test_logger = setup_logger("test_root_has_handler")
        finally:
            root.removeHandler(root_handler)

        assert len(test_logger.handlers) == 1
        assert isinstance(test_logger.handlers[0].formatter, jsonlogger.JsonFormatter)

    def test_global_logger_exists(self):
        assert isinstance(logger, logging.Logger)
        assert logger.name == "genome_healthchecks"


class TestCheckLogging:
    """Test check lifecycle logging functions."""

    def test_log_check_start(self, captured):
        log_check_start("CheckSpeciesSetTag", database_count=3)

        record = captured()[-1]
        assert record["message"] == "Health check started"
        assert record["event_type"] == "check_start"
        assert record["check_name"] == "CheckSpeciesSetTag"
        assert record["database_count"] == 3

    def test_log_check_complete(self, captured):
        log_check_complete("Ditag", passed=False, duration_seconds=1.5)

        record = captured()[-1]
        assert record["event_type"] == "check_complete"
        assert record["passed"] is False
        assert record["duration_seconds"] == 1.5

    def test_log_check_error(self, captured):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            log_check_error(e, "Ditag", subject="homo_sapiens_core_75_37")

        record = captured()[-1]
        assert record["levelname"] == "ERROR"
        assert record["event_type"] == "check_error"
        assert record["subject"] == "homo_sapiens_core_75_37"
        assert record["error_type"] == "RuntimeError"
        assert record["error_message"] == "boom"


class TestFindingLogging:
    """Test finding logging."""

    def test_ok_finding_logged_at_info(self, captured):
        log_finding("Ditag", "OK", "db1", "All good")

        record = captured()[-1]
        assert record["levelname"] == "INFO"
        assert record["message"] == "All good"
        assert record["severity"] == "OK"

    def test_problem_finding_logged_at_warning(self, captured):
        log_finding("Ditag", "PROBLEM", "db1", "No ditags in database")

        record = captured()[-1]
        assert record["levelname"] == "WARNING"
        assert record["subject"] == "db1"


class TestDatabaseErrorLogging:

    def test_log_database_error(self, captured):
        log_database_error(ValueError("bad sql"), query_context="ensembl_compara_75: SELECT 1")

        record = captured()[-1]
        assert record["event_type"] == "database_error"
        assert record["error_type"] == "ValueError"
        assert record["query_context"] == "ensembl_compara_75: SELECT 1"
