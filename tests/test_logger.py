"""Tests for logger module."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from groupwarden.util import logger as logger_module
from groupwarden.util.logger import (
    DATE_FORMAT,
    LOG_COLORS,
    LOG_FORMAT,
    RESET_COLOR,
    ColorFormatter,
    PromptToolkitHandler,
    get_logger,
    handle_exception,
    setup_logger,
    should_use_color,
)


def make_record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
        func="test_func",
    )


class TestShouldUseColor:
    """Tests for should_use_color function."""

    @patch('sys.stderr.isatty')
    def test_should_use_color_tty(self, mock_isatty):
        mock_isatty.return_value = True
        assert should_use_color() is True

    @patch('sys.stderr.isatty')
    def test_should_use_color_no_tty(self, mock_isatty):
        mock_isatty.return_value = False
        assert should_use_color() is False

    @patch('sys.stderr.isatty')
    def test_should_use_color_exception(self, mock_isatty):
        """Test color returns False on exception."""
        mock_isatty.side_effect = Exception("Error")
        assert should_use_color() is False


class TestColorFormatter:
    """Tests for ColorFormatter class."""

    @pytest.mark.parametrize("level", [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL])
    def test_wraps_message_in_level_color(self, level):
        formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        formatted = formatter.format(make_record(level, "[LEDGER] Logged spam"))

        assert formatted.startswith(LOG_COLORS[logging.getLevelName(level)])
        assert formatted.endswith(RESET_COLOR)
        assert "[LEDGER] Logged spam" in formatted

    def test_unknown_level_is_plain(self):
        formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        record = make_record(25, "custom")

        formatted = formatter.format(record)

        assert RESET_COLOR not in formatted
        assert "custom" in formatted


class TestPromptToolkitHandler:
    def test_emit_prints_through_prompt_toolkit(self):
        handler = PromptToolkitHandler(formatter=logging.Formatter("%(message)s"))

        with patch("groupwarden.util.logger.print_formatted_text") as mock_print:
            handler.emit(make_record(logging.INFO, "hello"))

        mock_print.assert_called_once()
        assert mock_print.call_args.args[0].value == "hello"

    def test_emit_failure_goes_to_handle_error(self):
        handler = PromptToolkitHandler()

        with patch("groupwarden.util.logger.print_formatted_text", side_effect=OSError("closed")):
            with patch.object(handler, "handleError") as handle_error:
                handler.emit(make_record(logging.INFO, "hello"))

        handle_error.assert_called_once()


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_configures_handlers(self):
        logger = setup_logger("groupwarden_test_logger_1")

        assert logger.name == "groupwarden_test_logger_1"
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        kinds = {type(handler) for handler in logger.handlers}
        assert kinds == {PromptToolkitHandler, RotatingFileHandler}

    def test_setup_logger_returns_existing(self):
        logger1 = setup_logger("groupwarden_test_logger_2")
        handlers = list(logger1.handlers)
        logger2 = get_logger("groupwarden_test_logger_2")

        assert logger1 is logger2
        assert logger2.handlers == handlers

    def test_file_handler_rotates(self):
        logger = setup_logger("groupwarden_test_logger_3")
        file_handler = next(h for h in logger.handlers if isinstance(h, RotatingFileHandler))

        assert file_handler.maxBytes == logger_module.LOG_MAX_BYTES
        assert file_handler.backupCount == logger_module.LOG_BACKUP_COUNT


class TestLogFilePath:
    def test_log_file_is_shared_for_the_session(self):
        first = logger_module.get_log_filepath()
        second = logger_module.get_log_filepath()

        assert first == second
        assert first.parent == logger_module.LOGS_DIR
        assert first.suffix == ".log"

    def test_recent_log_file_is_reused(self, tmp_path, monkeypatch):
        monkeypatch.setattr(logger_module, "LOGS_DIR", tmp_path)
        monkeypatch.setattr(logger_module, "LOG_FILEPATH", None)
        from datetime import datetime

        recent = tmp_path / (datetime.now().strftime(DATE_FORMAT) + ".log")
        recent.write_text("previous run\n")

        assert logger_module.get_log_filepath() == recent

    def test_new_file_when_none_exists(self, tmp_path, monkeypatch):
        monkeypatch.setattr(logger_module, "LOGS_DIR", tmp_path)
        monkeypatch.setattr(logger_module, "LOG_FILEPATH", None)

        path = logger_module.get_log_filepath()

        assert path.parent == tmp_path
        assert not path.exists()


class TestHandleException:
    def test_keyboard_interrupt_goes_to_default_hook(self):
        with patch.object(sys, "__excepthook__") as default_hook:
            handle_exception(KeyboardInterrupt, KeyboardInterrupt(), None)

        default_hook.assert_called_once()

    def test_other_exceptions_are_logged(self):
        error = ValueError("boom")
        with patch("groupwarden.util.logger.logging.error") as log_error:
            handle_exception(ValueError, error, None)

        log_error.assert_called_once()
        assert log_error.call_args.kwargs["exc_info"] == (ValueError, error, None)


def test_noisy_libraries_are_quiet():
    for name in ("openai", "httpx", "aiosqlite", "PIL"):
        lg = logging.getLogger(name)
        assert lg.level == logging.WARNING
        assert lg.propagate is False
