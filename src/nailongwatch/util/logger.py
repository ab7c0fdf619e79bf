"""
Logging for NailongWatch.

Every subsystem asks :func:`get_logger` for a named logger. Records go to the
console through prompt_toolkit and to one rotating file per bot session under
``logs/`` (or ``NAILONGWATCH_LOG_DIR``). The console threshold follows
``NAILONGWATCH_LOG_LEVEL``; the file always receives DEBUG so a moderation
decision can be traced after the fact.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

# -------------------- Configuration --------------------
LOGS_DIR: Path = Path(os.getenv("NAILONGWATCH_LOG_DIR") or Path(__file__).parents[3] / "logs").resolve()

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"

# Session logs rotate at 10 MB, keeping five old files
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Discord gateway chatter and per-request HTTP logs drown out detection results
THIRD_PARTY_LOGGERS = (
    "discord", "discord.gateway", "discord.client", "discord.http",
    "onnxruntime", "PIL", "urllib3", "websockets", "aiohttp",
)

_session_log_path: Path | None = None


def console_level() -> int:
    """Console threshold from ``NAILONGWATCH_LOG_LEVEL``; unknown names fall back to DEBUG."""
    name = (os.getenv("NAILONGWATCH_LOG_LEVEL") or "DEBUG").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.DEBUG


# -------------------- Console output --------------------
class ColorFormatter(logging.Formatter):
    """Colours the whole line by level so mutes and errors stand out in the console."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = LEVEL_COLORS.get(record.levelname)
        return f"{color}{line}{RESET_COLOR}" if color else line


class PromptToolkitHandler(logging.Handler):
    """Writes records with ``print_formatted_text`` so ANSI colours render on every terminal."""

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def should_use_color() -> bool:
    """True when stderr is an interactive terminal."""
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
console_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


# -------------------- File output --------------------
def get_log_filepath() -> Path:
    """
    Path of this bot session's log file.

    The file is named after the moment the first logger was created; every
    later logger appends to the same file.
    """
    global _session_log_path

    if _session_log_path is None:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        _session_log_path = LOGS_DIR / (datetime.now().strftime(DATE_FORMAT) + ".log")

    return _session_log_path


def setup_logger(logger_name: str) -> logging.Logger:
    """Attach the console and session-file handlers to ``logger_name``.

    Parameters
    ----------
    logger_name:
        Subsystem name, e.g. ``"detector"`` or ``"dispatcher"``.

    Returns
    -------
    logging.Logger
        The configured logger. A logger that already has handlers is returned
        unchanged.
    """
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = PromptToolkitHandler(formatter=console_formatter)
    console_handler.setLevel(console_level())
    logger.addHandler(console_handler)

    session_handler = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    session_handler.setLevel(logging.DEBUG)
    session_handler.setFormatter(plain_formatter)
    logger.addHandler(session_handler)

    return logger


def get_logger(logger_name: str) -> logging.Logger:
    """Retrieve a NailongWatch logger, creating it on first use."""
    return setup_logger(logger_name)


# -------------------- Process hooks --------------------
def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` for the bot: log the crash, but let Ctrl+C exit quietly."""
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


def quiet_third_party_loggers() -> None:
    """Raise library loggers to ERROR and drop handlers they installed themselves."""
    for name in THIRD_PARTY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(logging.ERROR)
        library_logger.propagate = False
        library_logger.handlers = []


quiet_third_party_loggers()
