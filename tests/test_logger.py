"""Tests for logger module."""

import logging
from unittest.mock import patch

from nailongwatch.util.logger import (
    DATE_FORMAT,
    LOG_FORMAT,
    ColorFormatter,
    PromptToolkitHandler,
    console_level,
    get_logger,
    handle_exception,
    should_use_color,
)


class TestShouldUseColor:

    @patch("sys.stderr.isatty")
    def test_tty(self, mock_isatty):
        mock_isatty.return_value = True
        assert should_use_color() is True

    @patch("sys.stderr.isatty")
    def test_no_tty(self, mock_isatty):
        mock_isatty.return_value = False
        assert should_use_color() is False

    @patch("sys.stderr.isatty")
    def test_exception(self, mock_isatty):
        mock_isatty.side_effect = Exception("Error")
        assert should_use_color() is False


class TestColorFormatter:

    def make_record(self, level):
        return logging.LogRecord("test", level, __file__, 1, "hello", None, None)

    def test_known_level_is_wrapped_in_color(self):
        formatted = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT).format(self.make_record(logging.ERROR))

        assert formatted.startswith("\033[31m")
        assert formatted.endswith("\033[0m")
        assert "hello" in formatted

    def test_unknown_level_is_plain(self):
        formatted = ColorFormatter("%(message)s").format(self.make_record(5))

        assert formatted == "hello"


class TestGetLogger:

    def test_handlers_configured_once(self):
        logger = get_logger("nailongwatch_test_logger")
        handler_count = len(logger.handlers)

        assert get_logger("nailongwatch_test_logger") is logger
        assert len(logger.handlers) == handler_count == 2
        assert any(isinstance(h, PromptToolkitHandler) for h in logger.handlers)
        assert logger.propagate is False


class TestHandleException:

    @patch("sys.__excepthook__")
    def test_keyboard_interrupt_uses_default_hook(self, mock_hook):
        handle_exception(KeyboardInterrupt, KeyboardInterrupt(), None)
        mock_hook.assert_called_once()

    @patch("nailongwatch.util.logger.logging.error")
    def test_other_exceptions_are_logged(self, mock_error):
        error = ValueError("bad")
        handle_exception(ValueError, error, None)
        mock_error.assert_called_once()


class TestConsoleLevel:

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("NAILONGWATCH_LOG_LEVEL", "warning")
        assert console_level() == logging.WARNING

    def test_unknown_level_defaults_to_debug(self, monkeypatch):
        monkeypatch.setenv("NAILONGWATCH_LOG_LEVEL", "chatty")
        assert console_level() == logging.DEBUG

    def test_unset_defaults_to_debug(self, monkeypatch):
        monkeypatch.delenv("NAILONGWATCH_LOG_LEVEL", raising=False)
        assert console_level() == logging.DEBUG
