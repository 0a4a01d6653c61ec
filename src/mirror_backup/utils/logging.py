"""Logging configuration and utilities."""

import logging
import logging.handlers
import time
from pathlib import Path
from typing import Optional

# Console lines stay short: the upload progress bar shares the terminal
CONSOLE_FORMAT = '%(levelname)-7s %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(message)s'

# HTTP and token chatter only shows up when debugging
NOISY_LOGGERS = ("msal", "urllib3")


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    log_to_console: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3
) -> logging.Logger:
    """Configure the ``mirror_backup`` logger for one backup run.

    The console gets terse ``LEVEL message`` lines on stderr at log_level.
    The optional log file rotates and always records DEBUG with timestamps
    and logger names, so a failed run can be reconstructed from it.

    Args:
        log_level: Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        log_to_console: Whether to log to console
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger
    """
    level = getattr(logging, log_level.upper())
    logger = logging.getLogger("mirror_backup")
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.handlers.clear()

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return logger


class TimedOperation:
    """Log the start and end of a block together with its wall-clock duration.

    ``duration`` holds the elapsed seconds once the block has exited,
    whether it finished or raised.
    """

    def __init__(self, logger: logging.Logger, operation_name: str, log_level: str = "INFO"):
        self.logger = logger
        self.operation_name = operation_name
        self.log_level = getattr(logging, log_level.upper())
        self.duration = 0.0
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.monotonic()
        self.logger.log(self.log_level, f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._started is None:
            return
        self.duration = time.monotonic() - self._started
        if exc_type is None:
            self.logger.log(self.log_level, f"Completed {self.operation_name} in {self.duration:.2f}s")
        else:
            self.logger.error(f"Failed {self.operation_name} after {self.duration:.2f}s: {exc_val}")
