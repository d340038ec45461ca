"""Logging setup for the command line tool and the GUI.

Every module logs through ``logging.getLogger(__name__)``; this module only
installs the handlers and provides the timing and progress helpers used
while loading and splitting.
"""

import logging
import logging.handlers
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FILE_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


class LevelColorFormatter(logging.Formatter):
    """Console formatter that colours the level name on terminals."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[2m',      # Dim
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[1;31m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str, stream=None, use_colors: bool = True):
        super().__init__(fmt)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def formatMessage(self, record: logging.LogRecord) -> str:
        message = super().formatMessage(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        if not self.use_colors or color is None:
            return message
        return message.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)


class SetProgressLogger:
    """Reports progress while a sequence list is cut into character sets."""

    def __init__(self, logger: logging.Logger, set_count: int, sequence_count: int):
        self.logger = logger
        self.set_count = set_count
        self.sequence_count = sequence_count
        self.sets_done = 0
        self.rows_dropped = 0
        self._started = time.perf_counter()

    def set_done(self, name: str, kept: int):
        """Record one finished set that kept `kept` of the input sequences."""
        self.sets_done += 1
        dropped = self.sequence_count - kept
        self.rows_dropped += dropped
        self.logger.info(
            f"Separated character set {name}: {kept} sequences"
            + (f", {dropped} without data" if dropped else "")
            + f" [{self.sets_done}/{self.set_count}]"
        )

    def complete(self):
        if self.set_count == 0:
            return
        elapsed = time.perf_counter() - self._started
        self.logger.info(
            f"Split {self.sequence_count} sequences into {self.sets_done} sets "
            f"in {elapsed:.2f}s ({self.rows_dropped} empty rows left out)"
        )


def setup_logging(log_level: str = "INFO",
                  log_dir: str = ".sequence_matrix_logs",
                  console: bool = True,
                  colors: bool = True,
                  quiet: bool = False) -> Path:
    """
    Send all ``sequence_matrix`` logging to a rotating daily file and, optionally, stderr.

    Args:
        log_level: Level for both handlers (DEBUG records every interval cut)
        log_dir: Directory for log files
        console: Also log to stderr
        colors: Colour level names when stderr is a terminal
        quiet: Only errors reach the console

    Returns:
        Path of the log file
    """
    level = getattr(logging, log_level.upper())
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / f"sequence_matrix_{datetime.now():%Y%m%d}.log"

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=LOG_FILE_BYTES, backupCount=LOG_FILE_BACKUPS
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)-8s %(name)s [%(threadName)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.ERROR if quiet else level)
        console_handler.setFormatter(
            LevelColorFormatter('%(levelname)s: %(message)s', sys.stderr, use_colors=colors)
        )
        root_logger.addHandler(console_handler)

    logging.getLogger('sequence_matrix').info(f"Logging to {log_file} at {log_level.upper()}")
    return log_file


def log_performance(operation: str, duration: float, units: int = 0):
    """Log how long a load took and how many units it merged."""
    logger = logging.getLogger('sequence_matrix.performance')
    if units:
        logger.info(f"{operation}: {units} unit(s) merged in {duration:.2f}s")
    else:
        logger.info(f"{operation}: {duration:.2f}s")


class LogTimer:
    """Times a block; `elapsed` holds the duration once the block exits."""

    def __init__(self, operation: str, logger: logging.Logger):
        self.operation = operation
        self.logger = logger
        self.elapsed = 0.0
        self._started = 0.0

    def __enter__(self) -> 'LogTimer':
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self._started
        if exc_type is None:
            self.logger.debug(f"{self.operation} took {self.elapsed:.2f}s")
        else:
            self.logger.warning(
                f"{self.operation} stopped after {self.elapsed:.2f}s: {exc_type.__name__}"
            )
