"""Logging configuration and utilities."""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        # Console logs go to stderr; stdout may be carrying FASTA
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors if enabled."""
        levelname = record.levelname

        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        result = super().format(record)
        record.levelname = levelname

        return result


class ProgressLogger:
    """Logs export progress every ``interval`` transcripts."""

    def __init__(self, logger: logging.Logger, total: int, operation: str = "Exporting",
                 interval: int = 1000):
        """
        Initialize progress logger.

        Args:
            logger: Logger instance to use
            total: Total number of items
            operation: Operation description
            interval: Log every this many items (and on the last one)
        """
        self.logger = logger
        self.total = total
        self.operation = operation
        self.interval = max(1, interval)
        self.processed = 0
        self.start_time = datetime.now()

    def update(self, item: Optional[str] = None):
        """Record one processed item."""
        self.processed += 1
        if self.processed % self.interval and self.processed != self.total:
            return

        progress = (self.processed / self.total) * 100 if self.total > 0 else 100.0

        elapsed = (datetime.now() - self.start_time).total_seconds()
        if elapsed > 0:
            rate = self.processed / elapsed
            remaining = (self.total - self.processed) / rate if rate > 0 else 0
            eta = f", ETA: {int(remaining)}s"
        else:
            eta = ""

        suffix = f" (last: {item})" if item else ""
        self.logger.info(
            f"{self.operation}: {self.processed}/{self.total} "
            f"({progress:.1f}%){eta}{suffix}"
        )

    def complete(self):
        """Log completion summary."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        self.logger.info(
            f"{self.operation} complete: {self.processed} items in {elapsed:.1f}s"
        )


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    colors: bool = True,
    rotate_logs: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
    quiet: bool = False
) -> logging.Logger:
    """
    Setup logging for a run.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; no file logging when unset
        colors: Enable colored console output
        rotate_logs: Enable log rotation for the log file
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup files to keep
        quiet: Suppress all but error logs to console

    Returns:
        The package logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    console_formatter = ColoredFormatter(
        '%(levelname)s - %(message)s',
        use_colors=colors
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.ERROR if quiet else level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        if rotate_logs:
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count
            )
        else:
            file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # SQLAlchemy and urllib3 are chatty at DEBUG
    for noisy in ('sqlalchemy.engine', 'urllib3'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger('transcripts2fasta')
    logger.debug(f"Logging initialized - Level: {log_level}, File: {log_file}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(f"transcripts2fasta.{name}")


class LogTimer:
    """Context manager for timing operations."""

    def __init__(self, operation: str, logger: Optional[logging.Logger] = None):
        """
        Initialize timer.

        Args:
            operation: Operation description
            logger: Logger to use (defaults to performance logger)
        """
        self.operation = operation
        self.logger = logger or logging.getLogger('transcripts2fasta.performance')
        self.start_time = None
        self.elapsed = 0.0

    def __enter__(self):
        """Start timing."""
        self.start_time = datetime.now()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log elapsed time."""
        if self.start_time:
            self.elapsed = (datetime.now() - self.start_time).total_seconds()
            if exc_type is None:
                self.logger.info(f"{self.operation} completed in {self.elapsed:.2f}s")
            else:
                self.logger.error(f"{self.operation} failed after {self.elapsed:.2f}s")
