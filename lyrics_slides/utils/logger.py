"""
Logging for lyrics-slides

Two audiences share the root logger:

* the terminal only shows what a person running the CLI needs: warnings,
  errors and INFO records flagged as user facing (logger.console_info);
* the optional rotating log file receives every record at the configured
  level, with module and function names, for troubleshooting lookups.

Terminal records go through tqdm.write, so a warning printed during a
batch search is placed above the progress bar instead of splitting it.

Usage:
    from lyrics_slides.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.console_info("Saved to cache")    # terminal and file
    logger.debug("Rejected grok answer")     # file only
"""

import logging
import re
import sys
import time
from functools import partial
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style
from tqdm import tqdm

from ..config.settings import get_settings


colorama.init()

# Record attribute set by console_info()
USER_FACING = 'user_facing'

FILE_FORMAT = '%(asctime)s | %(name)-30s | %(levelname)-8s | %(funcName)-20s | %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# HTTP clients and provider SDKs log every request
QUIET_LOGGERS = ('aiohttp', 'asyncio', 'urllib3', 'httpx', 'httpcore', 'openai', 'anthropic')

LEVEL_COLORS = {
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}

SIZE_UNITS = {'': 1, 'K': 1024, 'M': 1024 ** 2, 'G': 1024 ** 3, 'T': 1024 ** 4}
SIZE_PATTERN = re.compile(r'(\d+(?:\.\d+)?)\s*([KMGT]?)B', re.IGNORECASE)


def parse_size(size: str) -> int:
    """
    Convert a size such as "10MB", "500kb" or "1.5 GB" to bytes

    Units are binary multiples (1KB = 1024 bytes).

    Raises:
        ValueError: If the string is not a number followed by B, KB, MB, GB or TB
    """
    match = SIZE_PATTERN.fullmatch(size.strip())
    if match is None:
        raise ValueError(f"Invalid size format: {size}")

    number, prefix = match.groups()
    return int(float(number) * SIZE_UNITS[prefix.upper()])


def is_user_facing(record: logging.LogRecord) -> bool:
    return record.levelno >= logging.WARNING or getattr(record, USER_FACING, False)


class TerminalFormatter(logging.Formatter):
    """Plain message for user output, colored level prefix for problems"""

    def __init__(self, colored: bool = True):
        super().__init__('%(message)s')
        self.colored = colored

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno < logging.WARNING:
            return message

        label = record.levelname.capitalize()
        if self.colored:
            label = f"{LEVEL_COLORS.get(record.levelno, '')}{label}{Style.RESET_ALL}"
        return f"{label}: {message}"


class TerminalHandler(logging.Handler):
    """Writes user-facing records without breaking an active tqdm bar"""

    def __init__(self, stream=None, colored: bool = True):
        super().__init__()
        self.stream = stream or sys.stdout
        self.setFormatter(TerminalFormatter(colored))
        self.addFilter(is_user_facing)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
        except Exception:
            self.handleError(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    colored_output: bool = True,
    max_size: str = "10MB",
    backup_count: int = 3
) -> None:
    """
    Replace the root logger handlers

    Args:
        level: Minimum level written to the log file
        log_file: Log file path, None to log to the terminal only
        console_output: Show user-facing records on the terminal
        colored_output: Color warning and error labels
        max_size: Log file size that triggers rotation
        backup_count: Rotated files kept next to the log file
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if isinstance(handler, (TerminalHandler, RotatingFileHandler)):
            handler.close()

    if console_output:
        root.addHandler(TerminalHandler(colored=colored_output))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATE_FORMAT))
        root.addHandler(file_handler)

    # Their warnings still come through
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger('lyrics_slides').debug(f"Logging to {log_file or 'terminal only'} at {level}")


def current_log_file() -> Optional[Path]:
    """Path of the rotating log file in use, None when file logging is off"""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, RotatingFileHandler):
            return Path(handler.baseFilename)
    return None


def configure_from_settings() -> None:
    """Apply the logging section of the current settings"""
    settings = get_settings()
    config = settings.logging

    log_file = None
    if config.file:
        log_file = Path(config.file)
        if not log_file.is_absolute():
            log_file = settings.get_config_directory() / log_file

    setup_logging(
        level=config.level,
        log_file=str(log_file) if log_file else None,
        console_output=config.console_output,
        colored_output=config.colored_output,
        max_size=config.max_size,
        backup_count=config.backup_count
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger with user-output helpers

    console_info() logs at INFO and marks the record for the terminal.
    console_warning() and console_error() are warning() and error(), which
    reach the terminal anyway.
    """
    logger = logging.getLogger(name)
    if not hasattr(logger, 'console_info'):
        logger.console_info = partial(logger.info, extra={USER_FACING: True})
        logger.console_warning = logger.warning
        logger.console_error = logger.error
    return logger


class OperationLogger:
    """
    Report a batch operation

    Start and end messages go to the terminal. While items complete a tqdm
    bar shows the count, and per-item details and the total duration go to
    the log file.
    """

    def __init__(self, logger: logging.Logger, operation_name: str):
        self.logger = logger
        self.operation_name = operation_name
        self.progress_bar: Optional[tqdm] = None
        self._started_at: Optional[float] = None

    def start(self, message: Optional[str] = None) -> None:
        self._started_at = time.monotonic()
        self.logger.console_info(message or f"Starting {self.operation_name}")

    def progress(self, message: str, current: Optional[int] = None, total: Optional[int] = None) -> None:
        """
        Record one step

        With a total the bar is created on first use and moved to `current`;
        without one the message itself is shown unless a bar is active.
        """
        if not total:
            self.logger.debug(f"{self.operation_name}: {message}")
            if self.progress_bar is None:
                self.logger.console_info(message)
            return

        self.logger.debug(f"{self.operation_name}: {message} ({current}/{total})")
        if self.progress_bar is None:
            self.progress_bar = tqdm(
                total=total,
                desc=self.operation_name,
                unit='song',
                colour='cyan',
                dynamic_ncols=True
            )
        self.progress_bar.update((current or 0) - self.progress_bar.n)
        self.progress_bar.set_postfix_str(message, refresh=True)

    def complete(self, message: Optional[str] = None) -> None:
        self._close_bar()
        self.logger.console_info(message or f"{self.operation_name} completed")
        if self._started_at is not None:
            self.logger.debug(f"{self.operation_name} took {time.monotonic() - self._started_at:.2f}s")

    def error(self, message: str, exception: Optional[Exception] = None) -> None:
        self._close_bar()
        self.logger.error(f"{self.operation_name} failed: {message}", exc_info=exception)

    def _close_bar(self) -> None:
        if self.progress_bar is not None:
            self.progress_bar.close()
            self.progress_bar = None


def create_operation_logger(name: str, operation: str) -> OperationLogger:
    return OperationLogger(get_logger(name), operation)
