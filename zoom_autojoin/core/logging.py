"""
Logging configuration for the auto-join engine.

Everything logs under the "zoom_autojoin" logger: colored console output,
plus a daily rotating file under logs/ unless disabled. APScheduler logs
every job run at INFO, which at a 500ms tick drowns the engine's own
messages, so its loggers are held at WARNING unless debugging.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from datetime import datetime
from typing import Optional

from zoom_autojoin.config.settings import settings

ROOT_LOGGER = "zoom_autojoin"
LOG_DIR = Path("logs")
CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Held at WARNING unless the configured level is DEBUG
NOISY_LOGGERS = ("apscheduler.scheduler", "apscheduler.executors.default")


class ColoredFormatter(logging.Formatter):
    """Colors the level name for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        # Color a copy so file handlers keep the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(level: int, log_file: Optional[str]) -> logging.Handler:
    if log_file is None:
        LOG_DIR.mkdir(exist_ok=True)
        log_file = str(LOG_DIR / f"zoom_autojoin_{datetime.now().strftime('%Y%m%d')}.log")

    handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_file_logging: Optional[bool] = None
) -> logging.Logger:
    """
    Configure the "zoom_autojoin" logger. Safe to call again; handlers are replaced.

    Args:
        log_level: Override log level from settings
        log_file: Override log file path
        enable_file_logging: Override the file logging toggle from settings

    Returns:
        Configured logger instance
    """
    level = getattr(logging, (log_level or settings.log_level).upper())
    if enable_file_logging is None:
        enable_file_logging = settings.log_to_file

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(level))
    if enable_file_logging:
        logger.addHandler(_file_handler(level, log_file))

    third_party_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger with the given name.

    Args:
        name: Logger name (will be prefixed with 'zoom_autojoin.')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


# Initialize default logger
logger = setup_logging()
