"""
Logging Setup
=============
One root configuration shared by the CLI and the HTTP service.

Levels:
    CLI      — WARNING by default so log lines stay out of the menus,
               DEBUG with --debug (prompts and raw oracle replies)
    Service  — INFO, plus a daily file under LOG_DIR when LOG_TO_FILE is set
"""
import logging
import os
import sys
from datetime import datetime
from typing import Dict, Iterable

from lintpilot.core.config import LOG_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that follow the configured level
OWN_LOGGERS = ("lintpilot", "main", "uvicorn", "uvicorn.error", "uvicorn.access")

# Per-request chatter from the HTTP client stays at WARNING unless debugging
NOISY_LOGGERS = ("httpx", "httpcore")


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the whole record by level."""

    COLORS: Dict[int, str] = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }
    RESET = "\x1b[0m"

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)
        self._by_level = {
            level: logging.Formatter(color + LOG_FORMAT + self.RESET, datefmt=DATE_FORMAT)
            for level, color in self.COLORS.items()
        }

    def format(self, record):
        formatter = self._by_level.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


def _file_handler(log_dir: str) -> logging.Handler:
    os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(
        os.path.join(log_dir, f"lintpilot_{datetime.now().strftime('%Y%m%d')}.log"),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level=logging.WARNING,
    log_to_file: bool = False,
    log_dir: str = LOG_DIR,
    own_loggers: Iterable[str] = OWN_LOGGERS,
):
    """
    Setup centralized logging configuration.

    Safe to call more than once: existing root handlers are replaced, so
    the CLI can re-configure after an import already set the service level.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    # stderr keeps stdout clean for --raw JSON and piped summaries
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter())
    root_logger.addHandler(console_handler)

    if log_to_file:
        root_logger.addHandler(_file_handler(log_dir))

    for name in own_loggers:
        own = logging.getLogger(name)
        own.setLevel(level)
        own.propagate = True

    noisy_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    root_logger.debug("Logging initialized (level=%s, file=%s)", logging.getLevelName(level), log_to_file)
