"""
Unit Tests - Logging Configuration
"""
import logging

import pytest
import structlog
from structlog.processors import JSONRenderer

from sales_reports.config.logging import add_app_context, build_processors, configure_logging
from sales_reports.config.settings import Settings


@pytest.fixture
def restore_logging():
    """Put back the handlers pytest installed on the root logger"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestProcessors:
    """Tests for the shared processor chain"""

    def test_app_context_added(self):
        """Events are stamped with the application name and version"""
        processor = add_app_context(Settings(APP_NAME="reports-test", version="2.0.0"))

        event = processor(None, "info", {"event": "Report exported"})

        assert event["app"] == "reports-test"
        assert event["version"] == "2.0.0"

    def test_app_context_keeps_explicit_values(self):
        """An event that names its own app is left alone"""
        processor = add_app_context(Settings(APP_NAME="reports-test"))

        assert processor(None, "info", {"event": "x", "app": "loader"})["app"] == "loader"

    def test_bound_report_context_merged(self):
        """Context bound by the report builder reaches every event"""
        merge = build_processors(Settings())[0]

        with structlog.contextvars.bound_contextvars(report_type="customers"):
            event = merge(None, "info", {"event": "Joined fact lines"})

        assert event["report_type"] == "customers"


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_json_handler_on_root(self, restore_logging):
        """JSON rendering at the requested level"""
        configure_logging("WARNING", "json")

        handler = restore_logging.handlers[0]
        assert restore_logging.level == logging.WARNING
        assert isinstance(handler.formatter.processors[-1], JSONRenderer)

    def test_text_format(self, restore_logging):
        """Text output uses the console renderer"""
        configure_logging("INFO", "text")

        renderer = restore_logging.handlers[0].formatter.processors[-1]
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)

    def test_library_loggers_quieted(self, restore_logging):
        """SQL and driver chatter stays at WARNING unless SQL echo is on"""
        configure_logging("DEBUG", "json")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING
        assert restore_logging.level == logging.DEBUG
