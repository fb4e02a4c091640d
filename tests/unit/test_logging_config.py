"""
Unit tests for structured JSON logging configuration.
"""
import pytest
import logging
import json

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from kosmoo.common.context import CycleLogFilter
from kosmoo.common.logging_config import (
    JSONFormatter,
    configure_defaults,
    get_logger,
    setup_logging,
)


def make_record(msg="msg", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test", level=level,
        pathname="", lineno=1, msg=msg, args=(), exc_info=exc_info
    )


class TestJSONFormatter:
    """Test JSONFormatter output"""

    def setup_method(self):
        self.formatter = JSONFormatter()

    def test_format_basic_fields(self):
        """Test that basic log fields are present in JSON output"""
        record = logging.LogRecord(
            name="kosmoo.collectors.cinder",
            level=logging.INFO,
            pathname="cinder.py",
            lineno=42,
            msg="Indexed %d volumes",
            args=(3,),
            exc_info=None
        )
        data = json.loads(self.formatter.format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "kosmoo.collectors.cinder"
        assert data["message"] == "Indexed 3 volumes"
        assert data["line"] == 42
        assert data["timestamp"].endswith("Z")

    def test_format_includes_cycle_id(self):
        record = make_record()
        record.cycle_id = "abc-123"
        data = json.loads(self.formatter.format(record))
        assert data["cycle_id"] == "abc-123"

    def test_format_excludes_empty_cycle_id(self):
        """Test cycle_id is absent outside of a cycle"""
        record = make_record()
        record.cycle_id = ""
        data = json.loads(self.formatter.format(record))
        assert "cycle_id" not in data

    def test_format_includes_component(self):
        record = make_record()
        record.component = "exporter"
        data = json.loads(self.formatter.format(record))
        assert data["component"] == "exporter"

    def test_format_includes_domain(self):
        """Test the collector domain passed via extra is included"""
        record = make_record()
        record.domain = "neutron"
        data = json.loads(self.formatter.format(record))
        assert data["domain"] == "neutron"

    def test_format_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(self.formatter.format(make_record("error", logging.ERROR, exc_info)))
        assert "ValueError: boom" in data["exception"]


class TestSetupLogging:
    """Test setup_logging function"""

    def test_sets_level(self):
        logger = setup_logging("test.level", level="WARNING")
        assert logger.level == logging.WARNING

    def test_uses_json_formatter(self):
        logger = setup_logging("test.formatter")
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_text_format(self):
        logger = setup_logging("test.text", fmt="text")
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_attaches_scrape_filter(self):
        logger = setup_logging("test.filter_attach")
        assert any(isinstance(f, CycleLogFilter) for f in logger.filters)

    def test_no_duplicate_handlers(self):
        setup_logging("test.dedup")
        logger = setup_logging("test.dedup")
        assert len(logger.handlers) == 1
        assert sum(isinstance(f, CycleLogFilter) for f in logger.filters) == 1

    def test_propagation_disabled(self):
        logger = setup_logging("test.propagate")
        assert logger.propagate is False


class TestGetLogger:
    """Test get_logger function"""

    def test_get_logger_with_level(self):
        logger = get_logger("test.get_level", level="ERROR")
        assert logger.level == logging.ERROR

    def test_get_logger_creates_new_if_no_handlers(self):
        name = "test.get_new_logger_unique_42"
        logging.getLogger(name).handlers.clear()

        logger = get_logger(name)
        assert len(logger.handlers) > 0

    def test_get_logger_reuses_configured_logger(self):
        first = get_logger("test.reuse")
        handler = first.handlers[0]
        assert get_logger("test.reuse").handlers == [handler]


class TestConfigureDefaults:
    """Test reconfiguration of the package loggers at startup"""

    @pytest.fixture(autouse=True)
    def _restore(self):
        yield
        configure_defaults("INFO", "json")

    def test_reconfigures_existing_package_loggers(self):
        logger = get_logger("kosmoo.test_module")
        configure_defaults("DEBUG", "text")

        assert logger.level == logging.DEBUG
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_leaves_foreign_loggers_alone(self):
        foreign = setup_logging("urllib3.test", level="WARNING")
        configure_defaults("DEBUG", "json")
        assert foreign.level == logging.WARNING

    def test_applies_to_new_loggers(self):
        configure_defaults("ERROR", "json")
        logger = get_logger("test.created_after_defaults")
        assert logger.level == logging.ERROR
