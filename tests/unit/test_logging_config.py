"""
Unit tests for dbcompare.utils.logging

This module tests diagnostic logging configuration (JSON and console
formatting, context logging, environment-based setup) and the run log.
"""

import json
import logging
import logging.handlers
import sys
from unittest.mock import patch

import pytest

from dbcompare.utils.logging import (
    ConsoleFormatter,
    ContextLogger,
    JSONFormatter,
    close_run_log,
    configure_from_env,
    create_run_log,
    null_run_log,
    setup_logging,
)


def _record(msg="Compared table", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="dbcompare.test",
        level=level,
        pathname="/path/to/driver.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if isinstance(handler, logging.handlers.RotatingFileHandler) or isinstance(
            handler.formatter, (ConsoleFormatter, JSONFormatter)
        ):
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)


class TestJSONFormatter:
    """Test JSONFormatter class"""

    def test_init_with_defaults(self):
        formatter = JSONFormatter()

        assert formatter.include_timestamp is True
        assert formatter.app_name == "db-compare"
        assert formatter.hostname is not None

    def test_without_hostname(self):
        formatter = JSONFormatter(include_hostname=False)

        data = json.loads(formatter.format(_record()))

        assert formatter.hostname is None
        assert "hostname" not in data

    def test_format_basic_record(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "dbcompare.test"
        assert data["message"] == "Compared table"
        assert data["app"] == "db-compare"
        assert data["source"]["line"] == 42
        assert "timestamp" in data
        assert "context" not in data

    def test_format_includes_extra_context(self):
        data = json.loads(JSONFormatter().format(_record(table="dbo.Customers", mismatch_count=3)))

        assert data["context"] == {"table": "dbo.Customers", "mismatch_count": 3}

    def test_format_exception(self):
        try:
            raise ValueError("bad row")
        except ValueError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "bad row"


class TestConsoleFormatter:
    """Test ConsoleFormatter class"""

    def test_plain_output_without_tty(self):
        with patch("dbcompare.utils.logging.formatters.sys") as mock_sys:
            mock_sys.stderr.isatty.return_value = False
            formatter = ConsoleFormatter(use_colors=True)

        output = formatter.format(_record())

        assert "[INFO] dbcompare.test: Compared table" in output
        assert "\033[" not in output

    def test_appends_context(self):
        formatter = ConsoleFormatter(use_colors=False)

        output = formatter.format(_record(table="dbo.Customers"))

        assert output.endswith("[table=dbo.Customers]")

    def test_colors_do_not_leak_into_record(self):
        with patch("dbcompare.utils.logging.formatters.sys") as mock_sys:
            mock_sys.stderr.isatty.return_value = True
            formatter = ConsoleFormatter(use_colors=True)
        record = _record(level=logging.WARNING)

        output = formatter.format(record)

        assert "\033[33m" in output
        assert record.levelname == "WARNING"


class TestContextLogger:
    """Test ContextLogger class"""

    def test_adds_context_to_records(self, caplog):
        logger = ContextLogger("dbcompare.test.context", table="dbo.Orders")

        with caplog.at_level(logging.INFO, logger="dbcompare.test.context"):
            logger.info("Captured", side="new")

        record = caplog.records[-1]
        assert record.table == "dbo.Orders"
        assert record.side == "new"


class TestSetupLogging:
    """Test setup_logging and configure_from_env"""

    def test_sets_level_and_console_handler(self, restore_root_logger):
        setup_logging(level="DEBUG")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)

    def test_json_format(self, restore_root_logger):
        setup_logging(level="INFO", json_format=True)

        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "diag" / "dbcompare.log"

        setup_logging(level="INFO", log_file=str(log_file), console_output=False)

        handlers = restore_root_logger.handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)
        assert log_file.parent.exists()

    def test_noisy_loggers_quieted(self, restore_root_logger):
        setup_logging(level="DEBUG")

        assert logging.getLogger("apscheduler").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_configure_from_env(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("LOG_JSON", "true")
        monkeypatch.delenv("LOG_FILE", raising=False)
        monkeypatch.delenv("LOG_CONSOLE", raising=False)

        configure_from_env()

        assert restore_root_logger.level == logging.WARNING
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_configure_from_env_arguments_win(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.delenv("LOG_JSON", raising=False)
        monkeypatch.delenv("LOG_FILE", raising=False)
        monkeypatch.delenv("LOG_CONSOLE", raising=False)

        configure_from_env(level="DEBUG", json_format=True)

        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_configure_from_env_console_off(self, restore_root_logger, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_CONSOLE", "false")
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "diag.log"))
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_JSON", raising=False)

        configure_from_env()

        handlers = restore_root_logger.handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)


class TestRunLog:
    """Test the run log sink"""

    def test_writes_bare_messages(self, tmp_path):
        path = tmp_path / "logs" / "compare_log.txt"
        run_log = create_run_log(path, name="dbcompare.runlog.test-bare")

        run_log.info("=== Run started ===")
        close_run_log(run_log)

        assert path.read_text(encoding="utf-8") == "=== Run started ===\n"

    def test_appends_to_existing_file(self, tmp_path):
        path = tmp_path / "compare_log.txt"
        path.write_text("previous run\n", encoding="utf-8")

        run_log = create_run_log(path, name="dbcompare.runlog.test-append")
        run_log.info("next run")
        close_run_log(run_log)

        assert path.read_text(encoding="utf-8") == "previous run\nnext run\n"

    def test_does_not_propagate(self, tmp_path, caplog):
        run_log = create_run_log(tmp_path / "log.txt", name="dbcompare.runlog.test-prop")

        with caplog.at_level(logging.INFO):
            run_log.info("only in the file")
        close_run_log(run_log)

        assert "only in the file" not in caplog.text

    def test_reopening_replaces_handler(self, tmp_path):
        name = "dbcompare.runlog.test-reopen"
        create_run_log(tmp_path / "a.txt", name=name)
        run_log = create_run_log(tmp_path / "b.txt", name=name)

        assert len(run_log.handlers) == 1
        close_run_log(run_log)
        assert run_log.handlers == []

    def test_null_run_log_discards(self):
        run_log = null_run_log()

        run_log.info("ignored")

        assert all(isinstance(h, logging.NullHandler) for h in run_log.handlers)
        assert run_log.propagate is False
