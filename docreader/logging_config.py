"""
Logging for DocReader

Every module logs through the functions here rather than through its own
logger:

    from docreader.logging_config import debug_log, info, warning, error, Timer

Messages go to three places:
- logs/processing.log: everything from DEBUG level up
- stderr: warnings and errors, or everything when DEBUG=true
- logs/debug_flow.txt: a timestamped trace of the run, written only when
  DEBUG=true and only opened on the first message

Prefix messages with the component in brackets ("[Chunker] ...") so the
flow file reads as a timeline. Prompts, document text and API keys are
never logged; log sizes and counts instead.
"""

import logging
import sys
import threading
import time
from datetime import datetime

from docreader.config import DEBUG_MODE, LOG_DATE_FORMAT, LOG_FILE, LOG_FORMAT, LOGS_DIR

LOGGER_NAME = "DocReader"
FLOW_FILE_NAME = "debug_flow.txt"


class _FlowLog:
    """
    The debug_flow.txt trace.

    Worker threads log concurrently during parallel reading, so writes hold
    a lock. A directory that cannot be created disables the trace for the
    rest of the process.
    """

    def __init__(self, enabled: bool):
        self.enabled = enabled
        self._handle = None
        self._lock = threading.Lock()

    def _ensure_open(self) -> bool:
        if self._handle is not None:
            return True
        try:
            LOGS_DIR.mkdir(parents=True, exist_ok=True)
            self._handle = open(LOGS_DIR / FLOW_FILE_NAME, 'w', encoding='utf-8')
        except OSError:
            self.enabled = False
            return False
        self._handle.write(f"--- DocReader run started {datetime.now().isoformat(timespec='seconds')} ---\n")
        return True

    def write(self, line: str):
        if not self.enabled:
            return
        with self._lock:
            if not self._ensure_open():
                return
            stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
            self._handle.write(f"[{stamp}] {line}\n")
            self._handle.flush()

    def close(self):
        with self._lock:
            if self._handle is None:
                return
            self._handle.write(f"--- run ended {datetime.now().isoformat(timespec='seconds')} ---\n")
            self._handle.close()
            self._handle = None


def _build_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    try:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE, encoding='utf-8', delay=True)
    except OSError:
        file_handler = None
    if file_handler is not None:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if DEBUG_MODE else logging.WARNING)
    console.setFormatter(formatter)
    logger.addHandler(console)
    return logger


_flow = _FlowLog(enabled=DEBUG_MODE)
_logger = _build_logger()


def format_duration(seconds: float) -> str:
    """'850 ms', '12.40s' or '3.2m'."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    return f"{seconds / 60:.1f}m"


def debug_log(message: str):
    """
    Log a debug message.

    Example:
        debug_log("[Chunker] naive: 3 chunks at token_limit=3000")
    """
    _flow.write(message)
    _logger.debug(message)


def info(message: str):
    _flow.write(f"[INFO] {message}")
    _logger.info(message)


def warning(message: str):
    """Log a warning; shown on the console even outside DEBUG mode."""
    _flow.write(f"[WARNING] {message}")
    _logger.warning(message)


def error(message: str, exc_info: bool = False):
    """
    Log an error.

    Args:
        message: The error message
        exc_info: Attach the current traceback (DEBUG mode only)
    """
    _flow.write(f"[ERROR] {message}")
    _logger.error(message, exc_info=exc_info and DEBUG_MODE)


def debug_timing(operation: str, elapsed_seconds: float):
    """Log how long an operation took."""
    debug_log(f"{operation} took {format_duration(elapsed_seconds)}")


class Timer:
    """
    Times a block and logs its start and duration at debug level.

    Usage:
        with Timer("Chunked reading") as timer:
            ...
        timer.elapsed  # seconds

    Args:
        operation_name: Label used in the log lines
        auto_log: Log start and duration (False just measures)
    """

    def __init__(self, operation_name: str, auto_log: bool = True):
        self.operation_name = operation_name
        self.auto_log = auto_log
        self._started: float | None = None
        self.elapsed: float | None = None

    def __enter__(self) -> 'Timer':
        if self.auto_log:
            debug_log(f"Starting {self.operation_name}...")
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self._started
        if self.auto_log:
            suffix = f" (failed: {exc_type.__name__})" if exc_type is not None else ""
            debug_timing(f"{self.operation_name}{suffix}", self.elapsed)
        return False


def close_debug_log():
    """Finish the debug flow file; call once at process exit."""
    _flow.close()


__all__ = [
    'debug_log',
    'debug_timing',
    'format_duration',
    'info',
    'warning',
    'error',
    'close_debug_log',
    'Timer',
]
