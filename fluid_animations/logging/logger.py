"""
Logging configuration for fluid_animations.

The library never installs handlers on import. Hosts that want the library's
output call setup_logging() once; modules obtain loggers via get_logger().
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


_VERBOSE: bool = False

LOG_FORMAT = '%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s'
LOG_FILE_NAME = "fluid_animations.log"


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output."""

    COLORS = {
        'DEBUG': '\033[36m',       # Cyan
        'INFO': '\033[32m',        # Green
        'WARNING': '\033[33m',     # Yellow
        'ERROR': '\033[31m',       # Red
        'CRITICAL': '\033[35m',    # Magenta
    }
    # Spring/settle diagnostics stand out from the rest of the DEBUG stream
    SPRING_COLOR = '\033[38;5;135m'
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        original_levelname = record.levelname

        color = None
        if '[SPRING]' in str(record.msg):
            color = self.SPRING_COLOR
        elif record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]

        if color is None:
            return super().format(record)

        record.levelname = f"{self.BOLD}{color}{record.levelname}{self.RESET}"
        try:
            message = super().format(record)
        finally:
            record.levelname = original_levelname
        return f"{color}{message}{self.RESET}"


class SuppressingStreamHandler(logging.StreamHandler):
    """Stream handler that collapses consecutive duplicate sources.

    Per-frame DEBUG/INFO lines from the same logger/level are folded into a
    single "[N Suppressed]" summary line. WARNING and above always pass
    through and flush any pending summary first.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_name: Optional[str] = None
        self._last_level: Optional[int] = None
        self._suppress_count: int = 0
        self._last_record: Optional[logging.LogRecord] = None

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._emit_with_suppression(record)
        except Exception:
            self.handleError(record)

    def _emit_with_suppression(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.WARNING:
            self._flush_summary()
            super().emit(record)
            self._last_name = None
            self._last_level = None
            return

        if record.name == self._last_name and record.levelno == self._last_level:
            self._suppress_count += 1
            self._last_record = record
            return

        self._flush_summary()
        super().emit(record)
        self._last_name = record.name
        self._last_level = record.levelno
        self._last_record = record

    def _flush_summary(self) -> None:
        if self._suppress_count <= 0 or self._last_record is None:
            self._suppress_count = 0
            return

        last = self._last_record
        summary = logging.LogRecord(
            last.name,
            last.levelno,
            last.pathname,
            last.lineno,
            f"[{self._suppress_count} Suppressed]",
            args=None,
            exc_info=None,
        )
        summary.created = last.created
        summary.msecs = last.msecs
        super().emit(summary)
        self._suppress_count = 0

    @property
    def suppressed_count(self) -> int:
        return self._suppress_count

    def close(self) -> None:
        try:
            self._flush_summary()
        finally:
            super().close()


def setup_logging(debug: bool = False, verbose: bool = False,
                  log_dir: Optional[Path] = None) -> None:
    """
    Configure logging for hosts embedding the library.

    Args:
        debug: If True, set log level to DEBUG and enable console output.
        verbose: Enables high-volume per-sample debug logs (spring stepping,
            per-tick driver output). Verbose mode implies debug.
        log_dir: When given, log to a rotating file in this directory.
    """
    global _VERBOSE

    debug_enabled = debug or verbose
    level = logging.DEBUG if debug_enabled else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        # 1MB max, keep 5 backups
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=1 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    if debug_enabled:
        console_handler = SuppressingStreamHandler(sys.stdout)
        if sys.stdout.isatty():
            console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt='%H:%M:%S'))
        else:
            console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    _VERBOSE = bool(verbose)
    root_logger.info(
        "fluid_animations logging initialized (debug=%s, verbose=%s)",
        debug_enabled,
        _VERBOSE,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a library module."""
    return logging.getLogger(name)


def is_verbose_logging() -> bool:
    """Return True when verbose debug logging is enabled globally."""
    return _VERBOSE
